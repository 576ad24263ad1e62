from pydantic_settings import BaseSettings, NoDecode
from pydantic import field_validator
from functools import lru_cache
from typing import Annotated, Literal


class Settings(BaseSettings):
    """HealthPal API configuration."""

    APP_NAME: str = "HealthPal API"
    DEBUG: bool = False

    # Identity store
    STORE_BACKEND: Literal["mongodb", "memory"] = "mongodb"
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "healthpal"

    # Session tokens
    JWT_SECRET: str = "your-secret-key"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 30

    # Firebase Auth (federated sign-in)
    FIREBASE_CREDENTIALS_PATH: str = ""
    FIREBASE_PROJECT_ID: str = ""

    # Gemini (health assistant)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-pro"

    # Seeded admin account, created on startup when both are set
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""
    ADMIN_NAME: str = "Administrator"

    # CORS - comma-separated string from the environment is parsed into a list
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
