from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # MongoDB URL including the database name, e.g. mongodb://localhost/pygmy
    redis_url: str  # Redis URL used by the relay, e.g. redis://localhost:6379/0
    host: str
    port: int
    debug: bool
    session_secret: str = Field(..., min_length=1)  # HS256 signing secret for session tokens
    cors_origins: list[str] = []
    token_issuer: str = "pygmy:rest"
    token_audience: list[str] = ["pygmy:rest", "pygmy:gateway"]  # Both services must accept the token
    token_lifetime_weeks: int = 12  # Absolute token expiry
    session_idle_days: int = 14  # Sessions unused for longer than this are expired on next use
    password_hash_rounds: int = 12  # bcrypt cost factor
    relay_name: str = "rest"  # Name this service uses on the relay
    relay_gateway: str = "gateway"  # Name of the real-time gateway on the relay
    relay_channel_prefix: str = "ipc:"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "PYGMY_",
        "extra": "ignore",
    }
