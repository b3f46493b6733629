"""
WakaTime data source for coding activity over the last seven days.

API Documentation: https://wakatime.com/developers
"""

from pydantic import StrictStr

from portfolio_api.datasource.base import HOUR_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import BasicApiKey, ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import StrictNumber, UpstreamModel

TOP_LANGUAGES = 5


class WakaTimeLanguage(UpstreamModel):
    name: StrictStr
    percent: StrictNumber
    text: StrictStr


class WakaTimeStats(UpstreamModel):
    total_seconds: StrictNumber
    human_readable_total: StrictStr
    human_readable_daily_average: StrictStr
    languages: list[WakaTimeLanguage] = []


class WakaTimeResponse(UpstreamModel):
    data: WakaTimeStats


class LanguageShare(ResponseModel):
    name: str
    percent: float
    text: str


class CodingStats(ResponseModel):
    total_seconds: float
    human_readable_total: str
    daily_average: str
    languages: list[LanguageShare]


class WakaTimeSource(BaseDataSource[CodingStats]):
    BASE_URL = "https://wakatime.com/api/v1"
    SERVICE_ID = "wakatime"
    UPSTREAM_SCHEMA = WakaTimeResponse
    CONFIG = ProviderConfig(ttl_ms=HOUR_MS)

    def __init__(self, api_key: str, client: ServiceClient):
        super().__init__(client)
        self.api_key = api_key

    def missing_settings(self) -> list[str]:
        return [] if self.api_key else ["WAKATIME_API_KEY"]

    async def fetch_raw(self) -> object:
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=f"{self.BASE_URL}/users/current/stats/last_7_days",
            credentials=BasicApiKey(self.api_key),
        )

    def transform(self, payload: WakaTimeResponse) -> CodingStats:
        stats = payload.data
        return CodingStats(
            total_seconds=stats.total_seconds,
            human_readable_total=stats.human_readable_total,
            daily_average=stats.human_readable_daily_average,
            languages=[
                LanguageShare(name=lang.name, percent=lang.percent, text=lang.text)
                for lang in stats.languages[:TOP_LANGUAGES]
            ],
        )
