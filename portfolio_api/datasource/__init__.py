"""
Upstream data sources, one per provider.
"""

from loguru import logger

from portfolio_api.datasource.analytics import AnalyticsSource, AnalyticsSummary
from portfolio_api.datasource.base import BaseDataSource, ResponseModel
from portfolio_api.datasource.blog import BlogPost, BlogSource
from portfolio_api.datasource.github import GitHubSource, GitHubStats
from portfolio_api.datasource.lanyard import LanyardSource, Presence
from portfolio_api.datasource.leetcode import LeetCodeSource, LeetCodeStats
from portfolio_api.datasource.sanity import (
    CertificationSource,
    ExperienceSource,
    ProjectSource,
)
from portfolio_api.datasource.spotify import (
    NowPlaying,
    NowPlayingSource,
    TopArtistsSource,
    TopTracksSource,
)
from portfolio_api.datasource.sponsors import SponsorsSource, SponsorsSummary
from portfolio_api.datasource.wakatime import CodingStats, WakaTimeSource
from portfolio_api.services.client import ServiceClient
from portfolio_api.services.errors import ConfigurationError
from portfolio_api.settings import Settings


def build_sources(settings: Settings, client: ServiceClient) -> dict[str, BaseDataSource]:
    """
    Instantiate every provider from settings.

    Raises:
        ConfigurationError: If REQUIRE_ALL_PROVIDERS is set and any provider
            lacks a required secret
    """
    spotify = {
        "client_id": settings.spotify_client_id,
        "client_secret": settings.spotify_client_secret,
        "refresh_token": settings.spotify_refresh_token,
        "client": client,
    }
    sanity = {
        "project_id": settings.sanity_project_id,
        "dataset": settings.sanity_dataset,
        "api_version": settings.sanity_api_version,
        "token": settings.sanity_token,
        "client": client,
    }

    sources: list[BaseDataSource] = [
        LanyardSource(settings.discord_id, client),
        NowPlayingSource(**spotify),
        TopTracksSource(**spotify),
        TopArtistsSource(**spotify),
        AnalyticsSource(
            settings.ga_property_id,
            settings.ga_client_id,
            settings.ga_client_secret,
            settings.ga_refresh_token,
            client,
        ),
        GitHubSource(settings.github_username, client, token=settings.github_token),
        SponsorsSource(settings.github_username, settings.github_token, client),
        LeetCodeSource(settings.leetcode_username, client),
        BlogSource(settings.hashnode_username, client, token=settings.hashnode_token),
        WakaTimeSource(settings.wakatime_api_key, client),
        ExperienceSource(**sanity),
        ProjectSource(**sanity),
        CertificationSource(**sanity),
    ]

    missing: list[str] = []
    for source in sources:
        names = source.missing_settings()
        if names:
            logger.warning(
                f"Provider {source.provider_id} is not configured (missing {', '.join(names)}); "
                "its endpoint will report failures"
            )
            missing.extend(n for n in names if n not in missing)

    if missing and settings.require_all_providers:
        raise ConfigurationError(missing)

    return {source.provider_id: source for source in sources}


__all__ = [
    "BaseDataSource",
    "ResponseModel",
    "build_sources",
    # Sources
    "AnalyticsSource",
    "BlogSource",
    "CertificationSource",
    "ExperienceSource",
    "GitHubSource",
    "LanyardSource",
    "LeetCodeSource",
    "NowPlayingSource",
    "ProjectSource",
    "SponsorsSource",
    "TopArtistsSource",
    "TopTracksSource",
    "WakaTimeSource",
    # Response models
    "AnalyticsSummary",
    "BlogPost",
    "CodingStats",
    "GitHubStats",
    "LeetCodeStats",
    "NowPlaying",
    "Presence",
    "SponsorsSummary",
]
