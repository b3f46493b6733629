"""
GitHub Sponsors data source.

API Documentation: https://docs.github.com/en/graphql/reference/objects#sponsorship
Auth: GITHUB_TOKEN with read:user and read:org scopes. The GraphQL API has
no anonymous access.
"""

from typing import Literal

from loguru import logger
from pydantic import Field, StrictBool, StrictInt, StrictStr

from portfolio_api.datasource.base import HOUR_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import BearerToken, ServiceClient
from portfolio_api.services.errors import ValidationError
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import Invalid, UpstreamModel, validate

PAGE_SIZE = 100
MAX_PAGES = 10

SPONSORS_QUERY = """
query($login: String!, $first: Int!, $after: String) {
  user(login: $login) {
    sponsorshipsAsMaintainer(first: $first, after: $after, activeOnly: false, includePrivate: false) {
      totalCount
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        sponsorEntity {
          __typename
          ... on User { login name avatarUrl url }
          ... on Organization { login name avatarUrl url }
        }
        tier {
          name
          monthlyPriceInDollars
        }
        createdAt
        isActive
        privacyLevel
      }
    }
  }
}
"""


class SponsorEntity(UpstreamModel):
    typename: StrictStr = Field(alias="__typename")
    login: StrictStr
    name: StrictStr | None = None
    avatarUrl: StrictStr
    url: StrictStr


class SponsorTier(UpstreamModel):
    name: StrictStr
    monthlyPriceInDollars: StrictInt


class SponsorshipNode(UpstreamModel):
    sponsorEntity: SponsorEntity
    tier: SponsorTier | None = None
    createdAt: StrictStr
    isActive: StrictBool


class PageInfo(UpstreamModel):
    hasNextPage: StrictBool
    endCursor: StrictStr | None = None


class Sponsorships(UpstreamModel):
    totalCount: StrictInt
    nodes: list[SponsorshipNode]
    pageInfo: PageInfo


class SponsorsUser(UpstreamModel):
    sponsorshipsAsMaintainer: Sponsorships


class SponsorsData(UpstreamModel):
    user: SponsorsUser | None = None


class SponsorsPage(UpstreamModel):
    data: SponsorsData


class Tier(ResponseModel):
    name: str
    monthly_price_in_dollars: int


class Sponsor(ResponseModel):
    login: str
    name: str | None
    avatar_url: str
    url: str
    tier: Tier | None
    created_at: str
    is_active: bool
    type: Literal["User", "Organization"]


class SponsorsSummary(ResponseModel):
    sponsors: list[Sponsor]
    total_count: int
    total_monthly_income: int


class SponsorsSource(BaseDataSource[SponsorsSummary]):
    """
    Every sponsorship of the configured maintainer, across all pages.

    Monthly income counts active sponsors with a tier only.
    """

    GRAPHQL_URL = "https://api.github.com/graphql"
    SERVICE_ID = "github-sponsors"
    UPSTREAM_SCHEMA = list[SponsorsPage]
    CONFIG = ProviderConfig(ttl_ms=HOUR_MS, stale_while_revalidate_s=7200)

    def __init__(self, username: str, token: str | None, client: ServiceClient):
        super().__init__(client)
        self.username = username
        self.token = token

    def missing_settings(self) -> list[str]:
        required = {
            "GITHUB_USERNAME": self.username,
            "GITHUB_TOKEN": self.token,
        }
        return [name for name, value in required.items() if not value]

    async def fetch_raw(self) -> list[object]:
        credentials = BearerToken(self.token) if self.token else None
        pages: list[object] = []
        after: str | None = None

        for _ in range(MAX_PAGES):
            raw = await self.client.request_graphql(
                service_id=self.SERVICE_ID,
                url=self.GRAPHQL_URL,
                query=SPONSORS_QUERY,
                variables={"login": self.username, "first": PAGE_SIZE, "after": after},
                credentials=credentials,
            )
            # The cursor is needed before the next call
            result = validate(raw, SponsorsPage)
            if isinstance(result, Invalid):
                raise ValidationError(result.errors, service_id=self.SERVICE_ID)
            pages.append(raw)

            user = result.value.data.user
            if user is None or not user.sponsorshipsAsMaintainer.pageInfo.hasNextPage:
                break
            after = user.sponsorshipsAsMaintainer.pageInfo.endCursor
        else:
            logger.warning(f"Stopped paging sponsors for {self.username} after {MAX_PAGES} pages")

        return pages

    def transform(self, payload: list[SponsorsPage]) -> SponsorsSummary:
        sponsors: list[Sponsor] = []
        total_count = 0

        for page in payload:
            user = page.data.user
            if user is None:
                logger.warning(f"GitHub user {self.username} has no sponsor data")
                continue
            total_count = user.sponsorshipsAsMaintainer.totalCount
            for node in user.sponsorshipsAsMaintainer.nodes:
                entity = node.sponsorEntity
                sponsors.append(
                    Sponsor(
                        login=entity.login,
                        name=entity.name,
                        avatar_url=entity.avatarUrl,
                        url=entity.url,
                        tier=(
                            Tier(
                                name=node.tier.name,
                                monthly_price_in_dollars=node.tier.monthlyPriceInDollars,
                            )
                            if node.tier
                            else None
                        ),
                        created_at=node.createdAt,
                        is_active=node.isActive,
                        type="Organization" if entity.typename == "Organization" else "User",
                    )
                )

        income = sum(s.tier.monthly_price_in_dollars for s in sponsors if s.is_active and s.tier)
        logger.info(f"Fetched {len(sponsors)} sponsors for {self.username}, ${income}/month")
        return SponsorsSummary(
            sponsors=sponsors,
            total_count=total_count,
            total_monthly_income=income,
        )
