# storefront/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "session_token"
    CART_COOKIE_NAME: str = "cart"
    COOKIE_SECURE: bool = False

    DATABASE_URL: str = "sqlite:///./storefront.db"
    FRONTEND_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Checkout pricing
    SHIPPING_FLAT_FEE: float = 10.0
    TAX_RATE: float = 0.07
    COUPON_CODE: str = "LUSH20"
    COUPON_DISCOUNT_RATE: float = 0.2

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore" # .env may carry keys for other tools

settings = Settings()
