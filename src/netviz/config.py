"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NETVIZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "NetViz"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Live feed used when the link field is submitted empty
    default_feed_url: str = (
        "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/2.5_day.geojson"
    )
    default_poll_interval: int = 300   # seconds, 5 minutes
    fetch_timeout: float = 10.0        # seconds, per fetch
    user_agent: str = "NetViz/0.1.0"

    # Suffixes a file or URL must end with to be treated as a feed
    feed_suffixes: tuple[str, ...] = (".json", ".geojson")


settings = Settings()
