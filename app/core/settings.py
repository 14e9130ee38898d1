# app/core/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pydantic import field_validator

class Settings(BaseSettings):
    """
    Основные переменные окружения и настройки приложения.
    Все значения берутся из .env.
    """
    # Database
    DATABASE_URL: str = "sqlite:///./formbuilder.db"
    AUTO_CREATE_TABLES: bool = True

    # JWT / Security
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_ISSUER: str = "formbuilder"
    JWT_AUDIENCE: str = "formbuilder-clients"
    MIN_PASSWORD_LENGTH: int = 6

    # Сессия: окно "свежести" для админ-действий и троттлинг last_active
    SESSION_FRESHNESS_HOURS: int = 24
    LAST_ACTIVE_TOUCH_SECONDS: int = 60

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Forms
    FORM_PRESEED_ANSWERS: bool = True

    # First Superuser (можно через env)
    FIRST_SUPERUSER_NAME: str = "Admin"
    FIRST_SUPERUSER_EMAIL: Optional[str] = None
    FIRST_SUPERUSER_PASSWORD: Optional[str] = None

    # App meta
    ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Авто-сплит строкового списка ALLOWED_ORIGINS из .env
    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
