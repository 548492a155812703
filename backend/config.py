# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_ecobazaar.db"

    FRONTEND_URL: str = "http://localhost:5173"

    # Returns are accepted this many days after delivery
    RETURN_WINDOW_DAYS: int = 7

    # Where generated report PDFs are written
    REPORT_STORAGE_DIR: str = "storage/reports"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
