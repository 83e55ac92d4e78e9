# config.py - environment driven settings for the auth + library service
import os

from dotenv import load_dotenv

load_dotenv()


class AppConfig:
    # Sessions
    AUTH_SECRET_KEY = os.environ.get("AUTH_SECRET_KEY")
    ALGORITHM = "HS256"
    SESSION_EXPIRE_DAYS = 7
    SESSION_COOKIE_NAME = "token"

    # OTP challenges
    OTP_EXPIRE_MINUTES = 10
    OTP_ISSUE_ATTEMPTS = 3   # compare-and-swap retries when two issuers race

    # Runtime
    APP_ENV = os.environ.get("APP_ENV", "development").lower()
    DATABASE_URL = os.environ.get("DATABASE_URL") or "sqlite:///./db/learning.db"
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
        ).split(",")
        if origin.strip()
    ]

    # Twilio
    TWILIO_ACCOUNT_SID = os.environ.get("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.environ.get("TWILIO_AUTH_TOKEN")
    TWILIO_PHONE_NUMBER = os.environ.get("TWILIO_PHONE_NUMBER")
    SMS_TIMEOUT_SECONDS = float(os.environ.get("SMS_TIMEOUT_SECONDS", "5"))

    # YouTube Data API
    YOUTUBE_API_KEY = os.environ.get("YOUTUBE_API_KEY")
    YOUTUBE_TIMEOUT_SECONDS = float(os.environ.get("YOUTUBE_TIMEOUT_SECONDS", "10"))

    @classmethod
    def is_production(cls) -> bool:
        return cls.APP_ENV == "production"

    @classmethod
    def validate(cls):
        if not cls.AUTH_SECRET_KEY:
            raise RuntimeError(
                "AUTH_SECRET_KEY is not set. Please configure it in the environment."
            )
