"""Application configuration."""
from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")
    app_env: str = "development"
    debug: bool = True
    public_base_url: str = "http://localhost:8000"
    salon_name: str = "G Nail Pines"

    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "salon_crm"
    postgres_user: str = "salon_crm"
    postgres_password: str = "changeme"
    # Full DSN wins over the postgres_* parts when set.
    database_url: str = ""
    db_pool_size: int = 5

    redis_host: str = "localhost"
    redis_port: int = 6379
    rq_dispatch_queue_name: str = "dispatch"
    rq_ai_queue_name: str = "ai"

    jwt_secret: str = "your-jwt-secret-min-32-chars"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    owner_password: str = "changeme"
    frontdesk_pin: str = "0000"
    cron_secret: str = ""

    sms_provider: str = "console"  # twilio | console
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    twilio_messaging_service_sid: str = ""
    twilio_timeout_seconds: int = 10

    ai_worker_url: str = "http://localhost:8787"
    ai_worker_timeout_seconds: int = 20

    dispatch_batch_limit: int = 500
    dispatch_lock_ttl_seconds: int = 300


@lru_cache
def get_settings() -> Settings:
    return Settings()
