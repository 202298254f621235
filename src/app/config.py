"""Configuration management using Pydantic settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Territory Mapper"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Storage: territories.json lives in data_dir, exports default to export_dir
    data_dir: Path = Path("./data")
    export_dir: Path = Path("./data/exports")

    # Home viewport (Maranhão, Brazil by default)
    map_center_lat: float = -2.5589
    map_center_lng: float = -44.0609
    map_zoom: float = 13.0

    # Geocoding (city search)
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "territory-mapper/1.0"
    geocode_timeout: float = 10.0
    geocode_cache_dir: str = "~/.cache/territory-mapper/geocode"

    # OSM tiles + offline cache
    tile_url_template: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    tile_subdomains: list[str] = ["a", "b", "c"]
    tile_cache_dir: str = "~/.cache/territory-mapper/tiles"
    tile_store: str = "defaultStore"
    tile_offline: bool = False    # serve cached tiles only
    max_seed_tiles: int = 5000    # per seed request (OSM bulk download policy)
    seed_concurrency: int = 4


settings = Settings()
