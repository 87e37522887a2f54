from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database connection
    DB_DRIVER: str = "postgresql+asyncpg"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "content"
    DB_PASSWORD: str = "content"
    DB_NAME: str = "contentdb"
    # Full URL; overrides the DB_* parts when set.
    DATABASE_URL: str | None = None

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # Shared secret for mutating endpoints (X-API-Key header)
    API_KEY: str = "change-me-in-production"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


settings = Settings()
