"""Configuration using pydantic-settings."""

from pydantic_settings import BaseSettings

from . import __version__


class FetchSettings(BaseSettings):
    """Fetcher configuration."""

    timeout: float = 10.0
    user_agent: str = f"urifetch/{__version__}"
    max_connections: int = 100
    max_keepalive_connections: int = 20
    max_redirects: int = 20
    cache_path: str | None = None

    model_config = {"env_prefix": "URIFETCH_"}


settings = FetchSettings()
