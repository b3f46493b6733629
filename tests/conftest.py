from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from portfolio_api.api import create_app
from portfolio_api.services.cache import TTLCache
from portfolio_api.services.client import ServiceClient
from portfolio_api.settings import Settings

Handler = Callable[[httpx.Request], httpx.Response]

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API = "https://api.spotify.com/v1"
LANYARD_URL = "https://api.lanyard.rest/v1/users/123"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GA_URL = "https://analyticsdata.googleapis.com/v1beta/properties/999:runReport"
GITHUB_API = "https://api.github.com/users/octo"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
LEETCODE_URL = "https://leetcode-stats-api.herokuapp.com/octo"
HASHNODE_URL = "https://gql.hashnode.com/"
WAKATIME_URL = "https://wakatime.com/api/v1/users/current/stats/last_7_days"
SANITY_URL = "https://proj.apicdn.sanity.io/v2023-05-03/data/query/production"


class FakeClock:
    """Millisecond clock under test control."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class UpstreamStub:
    """
    Routes outbound requests by URL prefix and records them.

    The longest matching prefix wins, so a specific path can override
    a broader one.
    """

    def __init__(self):
        self.routes: dict[str, Handler] = {}
        self.calls: list[httpx.Request] = []

    def on(self, prefix: str, handler: Handler) -> None:
        self.routes[prefix] = handler

    def json(self, prefix: str, payload: Any, status_code: int = 200) -> None:
        self.on(prefix, lambda request: httpx.Response(status_code, json=payload))

    def status(self, prefix: str, status_code: int, text: str = "") -> None:
        self.on(prefix, lambda request: httpx.Response(status_code, text=text))

    def count(self, prefix: str) -> int:
        return sum(1 for request in self.calls if str(request.url).startswith(prefix))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url)
        matches = [prefix for prefix in self.routes if url.startswith(prefix)]
        if not matches:
            return httpx.Response(404, json={"error": f"no stub for {url}"})
        return self.routes[max(matches, key=len)](request)


def lanyard_payload(**data_overrides: Any) -> dict[str, Any]:
    data = {
        "discord_user": {
            "id": "123",
            "username": "octo",
            "avatar": "a_hash",
            "global_name": "Octo Cat",
            "discriminator": "0",
        },
        "discord_status": "online",
        "activities": [
            {"name": "Spotify", "type": 2, "state": "Artist", "details": "Song"},
            {"name": "Visual Studio Code", "type": 0, "details": "Editing main.py"},
        ],
        "listening_to_spotify": True,
    }
    data.update(data_overrides)
    return {"success": True, "data": data}


def spotify_track(name: str = "Song", artists: tuple[str, ...] = ("Artist",)) -> dict[str, Any]:
    return {
        "name": name,
        "artists": [{"name": artist} for artist in artists],
        "album": {"images": [{"url": f"https://i.scdn.co/{name}.jpg"}]},
        "external_urls": {"spotify": f"https://open.spotify.com/track/{name}"},
        "popularity": 50,
    }


def oauth_token() -> dict[str, Any]:
    return {"access_token": "short-lived", "token_type": "Bearer", "expires_in": 3600}


def leetcode_stats() -> dict[str, Any]:
    return {
        "status": "success",
        "message": "retrieved",
        "totalSolved": 300,
        "easySolved": 150,
        "mediumSolved": 120,
        "hardSolved": 30,
        "acceptanceRate": 61.5,
        "ranking": 98765,
        "contributionPoints": 1200,
    }


def hashnode_posts(*slugs: str) -> dict[str, Any]:
    edges = [
        {
            "node": {
                "title": f"Post {slug}",
                "slug": slug,
                "publishedAt": "2024-05-01T00:00:00.000Z",
                "brief": f"About {slug}",
            }
        }
        for slug in slugs
    ]
    return {"data": {"user": {"posts": {"edges": edges}}}}


def sponsorship(login: str, dollars: int | None = 5, active: bool = True, org: bool = False) -> dict[str, Any]:
    return {
        "sponsorEntity": {
            "__typename": "Organization" if org else "User",
            "login": login,
            "name": None,
            "avatarUrl": f"https://a/{login}.png",
            "url": f"https://github.com/{login}",
        },
        "tier": {"name": f"${dollars} a month", "monthlyPriceInDollars": dollars} if dollars else None,
        "createdAt": "2024-01-01T00:00:00Z",
        "isActive": active,
        "privacyLevel": "PUBLIC",
    }


def sponsors_page(nodes: list[dict[str, Any]], total: int, cursor: str | None = None) -> dict[str, Any]:
    return {
        "data": {
            "user": {
                "sponsorshipsAsMaintainer": {
                    "totalCount": total,
                    "pageInfo": {"hasNextPage": cursor is not None, "endCursor": cursor},
                    "nodes": nodes,
                }
            }
        }
    }


def github_user() -> dict[str, Any]:
    return {"login": "octo", "public_repos": 3, "followers": 42, "avatar_url": "https://a/octo.png"}


def github_repos() -> list[dict[str, Any]]:
    return [
        {
            "name": "alpha",
            "description": "first",
            "stargazers_count": 5,
            "language": "Python",
            "fork": False,
            "html_url": "https://github.com/octo/alpha",
        },
        {
            "name": "forked",
            "description": None,
            "stargazers_count": 100,
            "language": "C",
            "fork": True,
            "html_url": "https://github.com/octo/forked",
        },
        {
            "name": "beta",
            "description": None,
            "stargazers_count": 9,
            "language": None,
            "fork": False,
            "html_url": "https://github.com/octo/beta",
        },
    ]


def sanity_experience(doc_id: str = "exp-1") -> dict[str, Any]:
    return {
        "_id": doc_id,
        "_type": "experience",
        "_createdAt": "2024-01-01T00:00:00Z",
        "_updatedAt": "2024-02-01T00:00:00Z",
        "_rev": "abc",
        "company": "Acme",
        "position": "Engineer",
        "location": "Remote",
        "startDate": "2023-01-01",
        "endDate": None,
        "current": True,
        "description": "Built things",
        "responsibilities": ["Shipping"],
        "technologies": ["Python"],
        "companyUrl": None,
        "order": 1,
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def service_client(stub: UpstreamStub) -> ServiceClient:
    return ServiceClient(timeout=10.0, transport=httpx.MockTransport(stub))


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        discord_id="123",
        spotify_client_id="client",
        spotify_client_secret="secret",
        spotify_refresh_token="refresh",
        ga_property_id="999",
        ga_client_id="ga-client",
        ga_client_secret="ga-secret",
        ga_refresh_token="ga-refresh",
        github_username="octo",
        github_token="ghp",
        leetcode_username="octo",
        hashnode_username="octo",
        wakatime_api_key="waka",
        sanity_project_id="proj",
    )


@pytest.fixture
def app(settings: Settings, service_client: ServiceClient, cache: TTLCache):
    return create_app(settings, client=service_client, cache=cache)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client

