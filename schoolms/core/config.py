# schoolms/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    database_url: str
    redis_url: str = 'redis://localhost:6379/0'
    jwt_secret_key: str

    jwt_algorithm: str = 'HS256'
    access_token_expire_minutes: int = 60 * 24

    app_name: str = 'schoolms'
    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    # Cache
    cache_ttl_seconds: int = 300
    session_cache_ttl_seconds: int = 60

    # Session validation
    session_max_idle_minutes: int = 30
    session_validate_user_agent: bool = True
    session_validate_ip: bool = False

    # SMTP; emails are logged and skipped when no host is configured
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = 'no-reply@school.local'
    smtp_use_tls: bool = True

    # Files
    public_api_url: str = 'http://localhost:8080'
    files_route: str = '/api/v1/files'

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }


settings = Settings()
