from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_ENV: str = "development"          # "development", "production" ou "test"

    # --- DB ---
    DATABASE_URL: Optional[str] = None    # se definido, ignora os DB_* abaixo
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_NAME: str = "crmone"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: int = 30
    DB_CREATE_ALL: bool = False           # cria as tabelas ao subir (dev/tests)

    # --- Tokens ---
    APP_SECRET: str
    REFRESH_SECRET: Optional[str] = None  # se vazio, usa APP_SECRET
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # --- Cookies ---
    COOKIE_SECURE: bool = False           # em produção é sempre True
    COOKIE_SAMESITE: str = "lax"
    COOKIE_PATH: str = "/"
    COOKIE_DOMAIN: str = ""

    # --- Edge gate ---
    # LOGIN_URL é a página de login do frontend; relativo, resolve contra FRONTEND_URL
    # (ou a primeira origem de CORS_ORIGINS). A API só tem POST /auth/login.
    FRONTEND_URL: str = ""
    LOGIN_URL: str = "/auth/login"
    PUBLIC_PATHS: str = "/auth,/health,/docs,/redoc,/openapi.json"

    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() in ("prod", "production")

    @property
    def cookie_secure(self) -> bool:
        return self.is_production or bool(self.COOKIE_SECURE)

    @property
    def refresh_secret(self) -> str:
        return self.REFRESH_SECRET or self.APP_SECRET

    @property
    def public_paths(self) -> list[str]:
        return [p.strip().rstrip("/") or "/" for p in self.PUBLIC_PATHS.split(",") if p.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def login_url(self) -> str:
        url = self.LOGIN_URL.strip() or "/auth/login"
        if url.startswith(("http://", "https://")):
            return url
        base = self.FRONTEND_URL.strip() or next(iter(self.cors_origins), "")
        return base.rstrip("/") + "/" + url.lstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
