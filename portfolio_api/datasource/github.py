"""
GitHub REST API data source for profile and repository statistics.

API Documentation: https://docs.github.com/en/rest
Unauthenticated access is limited to 60 requests/hour; GITHUB_TOKEN raises it.
"""

import asyncio

from loguru import logger
from pydantic import StrictBool, StrictInt, StrictStr

from portfolio_api.datasource.base import HOUR_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import BearerToken, ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import UpstreamModel

TOP_REPOS = 5
TOP_LANGUAGES = 5


class GitHubUser(UpstreamModel):
    public_repos: StrictInt
    followers: StrictInt
    avatar_url: StrictStr


class GitHubRepo(UpstreamModel):
    name: StrictStr
    description: StrictStr | None = None
    stargazers_count: StrictInt
    language: StrictStr | None = None
    fork: StrictBool
    html_url: StrictStr


class GitHubPayload(UpstreamModel):
    """Both upstream responses, keyed by endpoint."""

    user: GitHubUser
    repos: list[GitHubRepo]


class UserStats(ResponseModel):
    repo_count: int
    follower_count: int
    avatar_url: str


class AggregateStats(ResponseModel):
    total_stars: int
    top_languages: list[str]


class TopRepo(ResponseModel):
    name: str
    description: str | None
    stars: int
    language: str | None
    url: str


class GitHubStats(ResponseModel):
    user: UserStats
    stats: AggregateStats
    top_repos: list[TopRepo]


class GitHubSource(BaseDataSource[GitHubStats]):
    """Profile counters, star totals and the most-starred original repos."""

    BASE_URL = "https://api.github.com"
    SERVICE_ID = "github-stats"
    UPSTREAM_SCHEMA = GitHubPayload
    CONFIG = ProviderConfig(ttl_ms=HOUR_MS)

    def __init__(self, username: str, client: ServiceClient, token: str | None = None):
        super().__init__(client)
        self.username = username
        self.token = token

    def missing_settings(self) -> list[str]:
        return [] if self.username else ["GITHUB_USERNAME"]

    async def fetch_raw(self) -> dict[str, object]:
        credentials = BearerToken(self.token) if self.token else None
        headers = {"Accept": "application/vnd.github+json"}

        user, repos = await asyncio.gather(
            self.client.request_json(
                service_id=self.SERVICE_ID,
                url=f"{self.BASE_URL}/users/{self.username}",
                headers=headers,
                credentials=credentials,
            ),
            self.client.request_json(
                service_id=self.SERVICE_ID,
                url=f"{self.BASE_URL}/users/{self.username}/repos",
                params={"per_page": "100", "sort": "updated"},
                headers=headers,
                credentials=credentials,
            ),
        )
        return {"user": user, "repos": repos}

    def transform(self, payload: GitHubPayload) -> GitHubStats:
        repos = payload.repos

        top_repos = sorted(
            (repo for repo in repos if not repo.fork),
            key=lambda repo: repo.stargazers_count,
            reverse=True,
        )[:TOP_REPOS]

        # First distinct languages in upstream (most recently updated) order
        languages: list[str] = []
        for repo in repos:
            if repo.language and repo.language not in languages:
                languages.append(repo.language)

        stats = GitHubStats(
            user=UserStats(
                repo_count=payload.user.public_repos,
                follower_count=payload.user.followers,
                avatar_url=payload.user.avatar_url,
            ),
            stats=AggregateStats(
                total_stars=sum(repo.stargazers_count for repo in repos),
                top_languages=languages[:TOP_LANGUAGES],
            ),
            top_repos=[
                TopRepo(
                    name=repo.name,
                    description=repo.description,
                    stars=repo.stargazers_count,
                    language=repo.language,
                    url=repo.html_url,
                )
                for repo in top_repos
            ],
        )
        logger.info(
            f"Fetched GitHub stats for {self.username}: {len(repos)} repos, "
            f"{stats.stats.total_stars} stars"
        )
        return stats
