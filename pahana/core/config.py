from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./pahana.db"

    # App
    APP_NAME: str = "Pahana Edu Billing System"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Security
    SECRET_KEY: str = "your-secret-key-here"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # File paths
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_RETENTION_DAYS: int = 30
    ERROR_LOG_RETENTION_DAYS: int = 90
    DATA_DIR: str = "data"

    # Company info
    COMPANY_NAME: str = "Pahana Edu"

    class Config:
        env_file = ".env"

settings = Settings()

# Ensure directories exist
os.makedirs(settings.LOG_DIR, exist_ok=True)
