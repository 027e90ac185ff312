from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str | None = None  # "memory" | "json" | "sql" | "kv"

    POSTGRES_URL: str | None = None
    DATABASE_URL: str | None = None

    KV_REST_API_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("KV_REST_API_URL", "UPSTASH_REDIS_REST_URL"),
    )
    KV_REST_API_TOKEN: str | None = Field(
        default=None,
        validation_alias=AliasChoices("KV_REST_API_TOKEN", "UPSTASH_REDIS_REST_TOKEN"),
    )
    KV_KEY_PREFIX: str = "classrate"

    JSON_STORE_DIR: str = "./data/sessions"

    DEFAULT_CREATED_BY: str = "Teacher"
    DEFAULT_EVALUATOR: str = "Anonymous"
    SCORE_TOLERANCE: float = 0.01

    @property
    def database_url(self) -> str | None:
        url = (self.POSTGRES_URL or self.DATABASE_URL or "").strip()
        if not url:
            return None
        # SQLAlchemy dropped the "postgres" dialect alias
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://") :]
        return url


settings = Settings()
