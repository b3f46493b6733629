import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Upstream Behaviour
    upstream_timeout: float = Field(default=10.0, alias="UPSTREAM_TIMEOUT")
    upstream_deadline: float = Field(default=15.0, alias="UPSTREAM_DEADLINE")
    upstream_max_attempts: int = Field(default=2, alias="UPSTREAM_MAX_ATTEMPTS")
    require_all_providers: bool = Field(default=False, alias="REQUIRE_ALL_PROVIDERS")
    cache_debug: bool = Field(default=False, alias="CACHE_DEBUG")

    # Discord presence (Lanyard)
    discord_id: str = Field(default="", alias="DISCORD_ID")

    # Spotify
    spotify_client_id: str = Field(default="", alias="SPOTIFY_CLIENT_ID")
    spotify_client_secret: str = Field(default="", alias="SPOTIFY_CLIENT_SECRET")
    spotify_refresh_token: str = Field(default="", alias="SPOTIFY_REFRESH_TOKEN")

    # Google Analytics (GA4 Data API)
    ga_property_id: str = Field(default="", alias="GA_PROPERTY_ID")
    ga_client_id: str = Field(default="", alias="GA_CLIENT_ID")
    ga_client_secret: str = Field(default="", alias="GA_CLIENT_SECRET")
    ga_refresh_token: str = Field(default="", alias="GA_REFRESH_TOKEN")

    # GitHub
    github_username: str = Field(default="", alias="GITHUB_USERNAME")
    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")

    # LeetCode
    leetcode_username: str = Field(default="", alias="LEETCODE_USERNAME")

    # Blog (Hashnode)
    hashnode_username: str = Field(default="", alias="HASHNODE_USERNAME")
    hashnode_token: str | None = Field(default=None, alias="HASHNODE_TOKEN")

    # WakaTime
    wakatime_api_key: str = Field(default="", alias="WAKATIME_API_KEY")

    # Sanity CMS
    sanity_project_id: str = Field(default="", alias="SANITY_PROJECT_ID")
    sanity_dataset: str = Field(default="production", alias="SANITY_DATASET")
    sanity_api_version: str = Field(default="2023-05-03", alias="SANITY_API_VERSION")
    sanity_token: str | None = Field(default=None, alias="SANITY_TOKEN")


def load_settings() -> Settings:
    """Build settings from the process environment (and .env, loaded above)."""
    return Settings.model_validate(dict(os.environ))
