"""
Application configuration using Pydantic Settings
"""

from pydantic import validator
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Client settings with environment variable support"""
    
    # Backend
    CDC_API_BASE_URL: str = "http://localhost:8080/api"
    API_KEY: Optional[str] = None
    REQUEST_TIMEOUT: float = 30.0
    
    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    
    # Polling
    TRANSFER_POLL_INTERVAL_SECONDS: float = 1.0
    STATUS_POLL_INTERVAL_SECONDS: float = 10.0
    
    @validator("STATUS_POLL_INTERVAL_SECONDS")
    def validate_status_interval(cls, v):
        if not 5 <= v <= 10:
            raise ValueError("STATUS_POLL_INTERVAL_SECONDS must be between 5 and 10")
        return v
    
    @validator("TRANSFER_POLL_INTERVAL_SECONDS")
    def validate_transfer_interval(cls, v):
        if v <= 0:
            raise ValueError("TRANSFER_POLL_INTERVAL_SECONDS must be positive")
        return v
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
