"""
LeetCode solve statistics.

API Documentation: https://github.com/JeremyTsaii/leetcode-stats-api
Unofficial community API, no key required.
"""

from loguru import logger
from pydantic import StrictInt

from portfolio_api.datasource.base import HOUR_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import StrictNumber, UpstreamModel


class LeetCodeResponse(UpstreamModel):
    totalSolved: StrictInt
    easySolved: StrictInt
    mediumSolved: StrictInt
    hardSolved: StrictInt
    acceptanceRate: StrictNumber
    ranking: StrictInt


class LeetCodeStats(ResponseModel):
    total_solved: int
    easy_solved: int
    medium_solved: int
    hard_solved: int
    acceptance_rate: float
    ranking: int


class LeetCodeSource(BaseDataSource[LeetCodeStats]):
    BASE_URL = "https://leetcode-stats-api.herokuapp.com"
    SERVICE_ID = "leetcode"
    UPSTREAM_SCHEMA = LeetCodeResponse
    CONFIG = ProviderConfig(ttl_ms=6 * HOUR_MS)

    def __init__(self, username: str, client: ServiceClient):
        super().__init__(client)
        self.username = username

    def missing_settings(self) -> list[str]:
        return [] if self.username else ["LEETCODE_USERNAME"]

    async def fetch_raw(self) -> object:
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=f"{self.BASE_URL}/{self.username}",
        )

    def transform(self, payload: LeetCodeResponse) -> LeetCodeStats:
        logger.info(f"Fetched LeetCode stats for {self.username}: {payload.totalSolved} solved")
        return LeetCodeStats(
            total_solved=payload.totalSolved,
            easy_solved=payload.easySolved,
            medium_solved=payload.mediumSolved,
            hard_solved=payload.hardSolved,
            acceptance_rate=payload.acceptanceRate,
            ranking=payload.ranking,
        )
