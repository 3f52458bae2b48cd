# reviewhub/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()  # load from .env


def _getint(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


class Settings:
    def __init__(self):
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./reviewhub.db")
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

        # Primary session (signed JWT in the session_token cookie)
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
        self.SESSION_ALGORITHM: str = os.getenv("SESSION_ALGORITHM", "HS256")
        self.SESSION_MAX_AGE: int = _getint("SESSION_MAX_AGE", 60 * 60 * 24)

        # Direct-exchange fallback cookies
        self.AUTH_COOKIE_MAX_AGE: int = _getint("AUTH_COOKIE_MAX_AGE", 60 * 60 * 24)

        self.GITHUB_CLIENT_ID: str = os.getenv("GITHUB_CLIENT_ID", "")
        self.GITHUB_CLIENT_SECRET: str = os.getenv("GITHUB_CLIENT_SECRET", "")
        self.GITHUB_OAUTH_CALLBACK_URL: str = os.getenv("GITHUB_OAUTH_CALLBACK_URL", "")
        self.GITHUB_DIRECT_CALLBACK_URL: str = os.getenv("GITHUB_DIRECT_CALLBACK_URL", "")
        self.GITHUB_OAUTH_SCOPES: str = os.getenv("GITHUB_OAUTH_SCOPES", "read:user user:email repo")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
