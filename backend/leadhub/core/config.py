import os
from datetime import timedelta
from typing import List, Optional

import pytz
from dotenv import load_dotenv

load_dotenv()

REQUIRED_VARS = ("DATABASE_URL", "JWT_SECRET")


class Settings:
    def __init__(self):
        self.DATABASE_URL: Optional[str] = os.environ.get("DATABASE_URL")
        self.JWT_SECRET: Optional[str] = os.environ.get("JWT_SECRET")
        self.JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
        self.DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", "10"))
        self.CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")
        self.LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
        # Months for trends and targets are calendar months in this zone
        self.APP_TIMEZONE: str = os.environ.get("APP_TIMEZONE", "Asia/Jakarta")
        # Outbound WhatsApp gateway; unset means notifications are a no-op
        self.WHATSAPP_API_URL: Optional[str] = os.environ.get("WHATSAPP_API_URL")
        self.WHATSAPP_API_TOKEN: Optional[str] = os.environ.get("WHATSAPP_API_TOKEN")

    @property
    def access_token_expires(self) -> timedelta:
        return timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def business_timezone(self):
        return pytz.timezone(self.APP_TIMEZONE)

    def check(self) -> None:
        """Raise if the backend URL or the signing secret is missing."""
        missing = [name for name in REQUIRED_VARS if not getattr(self, name)]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


settings = Settings()
