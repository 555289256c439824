from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_NAME: str = "fieldgrid"
    DATABASE_USER: str = "fieldgrid"
    DATABASE_PASSWORD: str = "fieldgrid"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432

    # Full URL override (e.g. sqlite for local runs and the CLI)
    DATABASE_URL_OVERRIDE: str | None = None

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql+psycopg2://{self.DATABASE_USER}:"
            f"{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:"
            f"{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    # Schema engine
    DEFAULT_SECTION_NAME: str = "General"
    UNGROUPED_GROUP_NAME: str = "Ungrouped"
    MAX_FIELD_NAME_LENGTH: int = 63

    DEBUG: bool = False

    # Sentry error tracking
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
