
import os

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///local.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RESTAURANT_NAME = os.getenv("RESTAURANT_NAME", "Pizzeria Moschini")
    RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "12"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # "smtp" delivers through SMTP_HOST, "log" only writes the message to the log
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "log")
    SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    MAIL_SENDER = os.getenv("MAIL_SENDER", "reservations@localhost")
    MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "Pizzeria Moschini")
