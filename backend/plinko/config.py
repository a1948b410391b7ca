"""Round service configuration from environment."""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings; override with PLINKO_* environment variables."""

    model_config = ConfigDict(env_prefix="PLINKO_")

    # Server
    debug: bool = False
    redis_url: str = "redis://localhost:6379/0"

    # Protocol
    protocol_version: str = "1.0"

    # Commitment
    server_seed_bytes: int = 32

    # Round persistence (Redis TTLs)
    round_ttl_seconds: int = 604800  # 7 days, long enough to verify after reveal
    round_lock_ttl_seconds: int = 30  # Auto-expire lock if process crashes mid-start

    # Listing / verification defaults
    recent_rounds_default: int = 20
    recent_rounds_max: int = 100
    default_verify_drop_column: int = 6


settings = Settings()
