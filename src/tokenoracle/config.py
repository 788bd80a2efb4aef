from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "token_oracle"
    redis_url: str = "redis://localhost:6379/0"
    alchemy_api_key: str = ""
    coingecko_api_key: str = ""
    debug: bool = False

    price_cache_ttl: int = 300  # seconds
    backoff_base_delay: float = 1.0  # seconds, doubled per consecutive failure
    external_call_timeout: float = 30.0
    provider_rate_per_second: float = 5.0
    coingecko_rate_per_second: float = 3.0  # ~1 request per 300ms

    backfill_batch_size: int = 5
    backfill_batch_delay: float = 1.5  # CoinGecko free tier: ~1.5s between bursts

    # Backfill time limit is job_lock_seconds * job_max_stalled; see workers.celery_app
    job_lock_seconds: int = 600
    job_max_stalled: int = 10

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"


settings = Settings()
