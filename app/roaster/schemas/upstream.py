"""
Upstream payload shapes and per-request outcomes.

The Spotify Web API is loosely typed from our point of view: fields go
missing, come back null, or lists contain null entries. Each payload we read
has a model here and the defaulting rules live on the model:

- missing name          -> "Unknown"
- missing genres        -> [] (null entries dropped)
- missing popularity    -> 0 for artists, None for tracks
- missing artists       -> primary artist "Unknown"
- missing track total   -> 0
- missing public flag   -> False

Null values are treated as missing. Unknown fields are ignored.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class SpotifyArtistRef(RawModel):
    name: str = "Unknown"


class SpotifyArtist(RawModel):
    name: str = "Unknown"
    genres: List[str] = []
    popularity: int = 0

    @field_validator("genres", mode="before")
    @classmethod
    def _drop_null_genres(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [g for g in value if g is not None]
        return value


class SpotifyTrack(RawModel):
    name: str = "Unknown"
    artists: List[Optional[SpotifyArtistRef]] = []
    popularity: Optional[int] = None

    @property
    def primary_artist(self) -> str:
        for artist in self.artists:
            if artist is not None:
                return artist.name
        return "Unknown"


class SpotifyPlaylistTracks(RawModel):
    total: int = 0


class SpotifyPlaylist(RawModel):
    name: str = "Unknown"
    tracks: SpotifyPlaylistTracks = SpotifyPlaylistTracks()
    public: bool = False


class ArtistPage(RawModel):
    items: List[Optional[SpotifyArtist]] = []


class FollowedArtistsResponse(RawModel):
    artists: ArtistPage = ArtistPage()


class TrackPage(RawModel):
    items: List[Optional[SpotifyTrack]] = []


class TrackItem(RawModel):
    """Play-history and saved-track items both wrap the track."""
    track: Optional[SpotifyTrack] = None


class TrackItemPage(RawModel):
    items: List[Optional[TrackItem]] = []


class PlaylistPage(RawModel):
    items: List[Optional[SpotifyPlaylist]] = []


class FailureKind(str, Enum):
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not-found"
    MALFORMED_RESPONSE = "malformed-response"
    NETWORK_ERROR = "network-error"
    HTTP_ERROR = "http-error"


class UpstreamOutcome:
    """Result of one upstream request: either UpstreamSuccess or UpstreamFailure"""

    ok = False

    def __init__(self, key: str):
        self.key = key


class UpstreamSuccess(UpstreamOutcome):
    ok = True

    def __init__(self, key: str, payload: Dict[str, Any]):
        super().__init__(key)
        self.payload = payload

    def __repr__(self):
        return f"UpstreamSuccess(key={self.key})"


class UpstreamFailure(UpstreamOutcome):

    def __init__(
        self,
        key: str,
        kind: FailureKind,
        message: str = "",
        http_status: Optional[int] = None,
    ):
        super().__init__(key)
        self.kind = kind
        self.message = message
        self.http_status = http_status

    @property
    def forbidden(self) -> bool:
        return self.kind == FailureKind.FORBIDDEN

    def __repr__(self):
        return f"UpstreamFailure(key={self.key}, kind={self.kind.value}, http_status={self.http_status})"


def failure_kind_for_status(status: Optional[int]) -> FailureKind:
    if status == 403:
        return FailureKind.FORBIDDEN
    if status == 404:
        return FailureKind.NOT_FOUND
    return FailureKind.HTTP_ERROR
