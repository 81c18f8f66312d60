"""Application configuration settings."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")
    
    # Redis configuration
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_password: Optional[str] = Field(default=None)
    redis_connection_timeout: int = Field(default=5)
    redis_socket_timeout: int = Field(default=5)
    redis_max_connections: int = Field(default=10)
    
    # API configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_debug: bool = Field(default=False)
    
    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text
    
    # Address field limits
    address_field_max_length: int = Field(default=255)
    postal_code_max_length: int = Field(default=10)


settings = Settings()
