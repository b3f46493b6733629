"""
Spotify Web API data sources: now playing, top tracks, top artists.

API Documentation: https://developer.spotify.com/documentation/web-api
Auth: refresh-token grant against accounts.spotify.com, then a bearer token.
"""

from typing import Optional

from loguru import logger
from pydantic import Field, StrictBool, StrictStr

from portfolio_api.datasource.base import DAY_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import RefreshTokenCredentials, ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import UpstreamModel

TOKEN_URL = "https://accounts.spotify.com/api/token"


class SpotifyArtist(UpstreamModel):
    name: StrictStr


class SpotifyImage(UpstreamModel):
    url: StrictStr


class SpotifyAlbum(UpstreamModel):
    images: list[SpotifyImage] = []


class SpotifyExternalUrls(UpstreamModel):
    spotify: StrictStr | None = None


class SpotifyTrack(UpstreamModel):
    name: StrictStr
    artists: list[SpotifyArtist] = []
    album: SpotifyAlbum
    external_urls: SpotifyExternalUrls = SpotifyExternalUrls()


class SpotifyCurrentlyPlaying(UpstreamModel):
    is_playing: StrictBool
    item: SpotifyTrack | None = None


class SpotifyTopTracks(UpstreamModel):
    items: list[SpotifyTrack]


class SpotifyTopArtist(UpstreamModel):
    name: StrictStr
    genres: list[StrictStr] = []
    images: list[SpotifyImage] = []
    external_urls: SpotifyExternalUrls = SpotifyExternalUrls()


class SpotifyTopArtists(UpstreamModel):
    items: list[SpotifyTopArtist]


class NowPlaying(ResponseModel):
    is_playing: bool
    song_name: str | None = None
    artist_name: str | None = None
    song_url: str | None = Field(default=None, alias="songURL")
    image_url: str | None = Field(default=None, alias="imageURL")


class TopTrack(ResponseModel):
    name: str
    artist: str
    url: str
    image_url: str


class TopArtist(ResponseModel):
    name: str
    url: str
    image_url: str
    genres: list[str] = []


def _first_image(images: list[SpotifyImage]) -> str:
    return images[0].url if images else ""


class SpotifySource(BaseDataSource):
    """Shared credentials and request plumbing for Spotify endpoints."""

    BASE_URL = "https://api.spotify.com/v1"
    PATH: str
    PARAMS: dict[str, str] | None = None

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        client: ServiceClient,
    ):
        super().__init__(client)
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.credentials = RefreshTokenCredentials(
            token_url=TOKEN_URL,
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=refresh_token,
        )

    def missing_settings(self) -> list[str]:
        required = {
            "SPOTIFY_CLIENT_ID": self.client_id,
            "SPOTIFY_CLIENT_SECRET": self.client_secret,
            "SPOTIFY_REFRESH_TOKEN": self.refresh_token,
        }
        return [name for name, value in required.items() if not value]

    async def fetch_raw(self) -> object:
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=f"{self.BASE_URL}/{self.PATH}",
            params=self.PARAMS,
            credentials=self.credentials,
        )


class NowPlayingSource(SpotifySource):
    """Currently playing track. Spotify answers 204 when nothing plays."""

    SERVICE_ID = "now-playing"
    PATH = "me/player/currently-playing"
    UPSTREAM_SCHEMA = Optional[SpotifyCurrentlyPlaying]
    CONFIG = ProviderConfig(
        ttl_ms=30 * 1000,
        fallback={"isPlaying": False},
        mask_failure_as_success=True,
    )
    EXCLUDE_NONE = True

    def transform(self, payload: SpotifyCurrentlyPlaying | None) -> NowPlaying:
        if payload is None or not payload.is_playing or payload.item is None:
            return NowPlaying(is_playing=False)

        track = payload.item
        return NowPlaying(
            is_playing=True,
            song_name=track.name,
            artist_name=", ".join(artist.name for artist in track.artists),
            song_url=track.external_urls.spotify,
            image_url=track.album.images[0].url if track.album.images else None,
        )


class TopTracksSource(SpotifySource):
    SERVICE_ID = "top-tracks"
    PATH = "me/top/tracks"
    PARAMS = {"limit": "20", "time_range": "short_term"}
    UPSTREAM_SCHEMA = SpotifyTopTracks
    CONFIG = ProviderConfig(ttl_ms=DAY_MS, fallback=[], mask_failure_as_success=True)

    def transform(self, payload: SpotifyTopTracks) -> list[TopTrack]:
        tracks = [
            TopTrack(
                name=track.name,
                artist=track.artists[0].name if track.artists else "Unknown Artist",
                url=track.external_urls.spotify or "",
                image_url=_first_image(track.album.images),
            )
            for track in payload.items
        ]
        logger.info(f"Fetched {len(tracks)} top tracks")
        return tracks


class TopArtistsSource(SpotifySource):
    SERVICE_ID = "top-artists"
    PATH = "me/top/artists"
    PARAMS = {"limit": "20", "time_range": "short_term"}
    UPSTREAM_SCHEMA = SpotifyTopArtists
    CONFIG = ProviderConfig(ttl_ms=DAY_MS, fallback=[], mask_failure_as_success=True)

    def transform(self, payload: SpotifyTopArtists) -> list[TopArtist]:
        artists = [
            TopArtist(
                name=artist.name,
                url=artist.external_urls.spotify or "",
                image_url=_first_image(artist.images),
                genres=list(artist.genres),
            )
            for artist in payload.items
        ]
        logger.info(f"Fetched {len(artists)} top artists")
        return artists
