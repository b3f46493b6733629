"""
Lanyard data source for Discord presence.

API Documentation: https://github.com/Phineas/lanyard
No API key required; the Discord user must be in the Lanyard server.
"""

from typing import Literal

from loguru import logger
from pydantic import StrictBool, StrictInt, StrictStr

from portfolio_api.datasource.base import MINUTE_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import UpstreamModel

DiscordStatus = Literal["online", "idle", "dnd", "offline"]

# Discord activity type codes
ACTIVITY_KINDS = {
    0: "playing",
    1: "streaming",
    2: "listening",
    3: "watching",
    4: "custom",
    5: "competing",
}


class DiscordUser(UpstreamModel):
    id: StrictStr
    username: StrictStr
    avatar: StrictStr | None = None
    global_name: StrictStr | None = None


class DiscordActivity(UpstreamModel):
    name: StrictStr
    type: StrictInt
    state: StrictStr | None = None
    details: StrictStr | None = None


class LanyardData(UpstreamModel):
    discord_user: DiscordUser
    discord_status: DiscordStatus
    activities: list[DiscordActivity] = []


class LanyardResponse(UpstreamModel):
    success: StrictBool = True
    data: LanyardData


class Activity(ResponseModel):
    name: str
    kind: str
    state: str | None = None
    details: str | None = None


class Presence(ResponseModel):
    user_id: str
    display_name: str
    avatar_ref: str | None = None
    status: DiscordStatus
    activities: list[Activity] = []


class LanyardSource(BaseDataSource[Presence]):
    """
    Discord presence via the Lanyard REST API.

    A failure with nothing cached is a hard error: the status widget
    has its own error state.
    """

    BASE_URL = "https://api.lanyard.rest/v1"
    SERVICE_ID = "lanyard"
    UPSTREAM_SCHEMA = LanyardResponse
    CONFIG = ProviderConfig(ttl_ms=MINUTE_MS)

    def __init__(self, discord_id: str, client: ServiceClient):
        super().__init__(client)
        self.discord_id = discord_id

    def missing_settings(self) -> list[str]:
        return [] if self.discord_id else ["DISCORD_ID"]

    async def fetch_raw(self) -> object:
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=f"{self.BASE_URL}/users/{self.discord_id}",
        )

    def transform(self, payload: LanyardResponse) -> Presence:
        data = payload.data
        user = data.discord_user
        presence = Presence(
            user_id=user.id,
            display_name=user.global_name or user.username,
            avatar_ref=user.avatar,
            status=data.discord_status,
            activities=[
                Activity(
                    name=activity.name,
                    kind=ACTIVITY_KINDS.get(activity.type, "unknown"),
                    state=activity.state,
                    details=activity.details,
                )
                for activity in data.activities
            ],
        )
        logger.info(f"Fetched presence for {user.username}: {presence.status}")
        return presence
