"""
Google Analytics (GA4 Data API) data source for total page views.

API Documentation: https://developers.google.com/analytics/devguides/reporting/data/v1
Auth: OAuth refresh-token grant against oauth2.googleapis.com (analytics.readonly
scope), exchanged for a short-lived bearer token on every fetch.
"""

from typing import Annotated

from loguru import logger
from pydantic import StrictStr, StringConstraints

from portfolio_api.datasource.base import HOUR_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import RefreshTokenCredentials, ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import UpstreamModel

# GA reports metric values as decimal strings
MetricCount = Annotated[StrictStr, StringConstraints(pattern=r"^\d+$")]

TOKEN_URL = "https://oauth2.googleapis.com/token"
START_DATE = "2020-01-01"


class MetricValue(UpstreamModel):
    value: MetricCount


class ReportRow(UpstreamModel):
    metricValues: list[MetricValue]


class RunReportResponse(UpstreamModel):
    rows: list[ReportRow] = []


class AnalyticsSummary(ResponseModel):
    total_pageviews: int


class AnalyticsSource(BaseDataSource[AnalyticsSummary]):
    """
    Lifetime page views for one GA4 property.

    The view counter on the site cannot show an error state, so failures
    with nothing cached fall back to zero.
    """

    BASE_URL = "https://analyticsdata.googleapis.com/v1beta"
    SERVICE_ID = "google"
    UPSTREAM_SCHEMA = RunReportResponse
    CONFIG = ProviderConfig(
        ttl_ms=HOUR_MS,
        fallback={"totalPageviews": 0},
        mask_failure_as_success=True,
    )

    def __init__(
        self,
        property_id: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        client: ServiceClient,
    ):
        super().__init__(client)
        self.property_id = property_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.credentials = RefreshTokenCredentials(
            token_url=TOKEN_URL,
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=refresh_token,
            client_auth="body",
        )

    def missing_settings(self) -> list[str]:
        required = {
            "GA_PROPERTY_ID": self.property_id,
            "GA_CLIENT_ID": self.client_id,
            "GA_CLIENT_SECRET": self.client_secret,
            "GA_REFRESH_TOKEN": self.refresh_token,
        }
        return [name for name, value in required.items() if not value]

    async def fetch_raw(self) -> object:
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=f"{self.BASE_URL}/properties/{self.property_id}:runReport",
            method="POST",
            json_data={
                "dateRanges": [{"startDate": START_DATE, "endDate": "today"}],
                "metrics": [{"name": "screenPageViews"}],
            },
            credentials=self.credentials,
        )

    def transform(self, payload: RunReportResponse) -> AnalyticsSummary:
        total = sum(
            int(metric.value) for row in payload.rows for metric in row.metricValues[:1]
        )
        logger.info(f"Fetched analytics summary: {total} page views")
        return AnalyticsSummary(total_pageviews=total)
