# sima/core/config.py

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACCESS_SECRET = "change_this_access_secret"
DEFAULT_REFRESH_SECRET = "change_this_refresh_secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # --- App ---
    APP_NAME: str = "S.I.M.A"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # --- Database Config ---
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 5432
    DB_NAME: str = "sima"
    DB_USER: str = "postgres"
    DB_PASS: str = "postgres"
    DB_POOL_MIN: int = 2
    DB_POOL_MAX: int = 10
    DB_POOL_TIMEOUT: int = 30

    # --- JWT Config ---
    JWT_ACCESS_SECRET: str = DEFAULT_ACCESS_SECRET
    JWT_REFRESH_SECRET: str = DEFAULT_REFRESH_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 7

    # --- Security ---
    BCRYPT_ROUNDS: int = 12
    TEMP_PASSWORD_LENGTH: int = 12

    # --- Uploads ---
    UPLOAD_DIR: str = "uploads"
    UPLOAD_MAX_SIZE: int = 5 * 1024 * 1024
    UPLOAD_MAX_FILES: int = 10
    UPLOAD_ALLOWED_EXTENSIONS: str = ".jpg,.jpeg,.png,.webp"

    # --- HTTP ---
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # --- Pagination / export ---
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    EXPORT_MAX_RECORDS: int = 10000

    # --- Metrics ---
    METRICS_BUFFER_SIZE: int = 1000
    SLOW_REQUEST_MS: int = 1000

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def asyncpg_url(self) -> str:
        return (
            f"postgresql://"
            f"{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://"
            f"{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_extensions(self) -> set[str]:
        return {
            e.strip().lower() for e in self.UPLOAD_ALLOWED_EXTENSIONS.split(",") if e.strip()
        }

    def validate_for_production(self) -> None:
        """Refuse to boot a production process with the development secrets."""
        if not self.is_production:
            return
        if self.JWT_ACCESS_SECRET == DEFAULT_ACCESS_SECRET:
            raise RuntimeError("JWT_ACCESS_SECRET must be changed in production")
        if self.JWT_REFRESH_SECRET == DEFAULT_REFRESH_SECRET:
            raise RuntimeError("JWT_REFRESH_SECRET must be changed in production")
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise RuntimeError("JWT access and refresh secrets must differ")


@lru_cache
def get_settings() -> Settings:
    return Settings()
