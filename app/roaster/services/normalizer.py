"""
Listening data normalizer.

Maps the upstream payloads into the uniform records the prompt and summary
work with:
- Spotify artists -> NormalizedArtist (genres capped to 3, popularity clamped)
- Spotify tracks, play history and saved tracks -> NormalizedTrack
- Spotify and Apple Music playlists -> NormalizedPlaylist

Failed reads become empty collections.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from roaster.schemas.apple import AppleMusicBundle
from roaster.schemas.profile import (
    ListeningProfile,
    NormalizedArtist,
    NormalizedPlaylist,
    NormalizedTrack,
)
from roaster.schemas.upstream import (
    ArtistPage,
    FollowedArtistsResponse,
    PlaylistPage,
    SpotifyArtist,
    SpotifyPlaylist,
    SpotifyTrack,
    TrackItemPage,
    TrackPage,
    UpstreamOutcome,
)

logger = logging.getLogger(__name__)

MAX_GENRES = 3


def _clamp_popularity(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    return max(0, min(100, value))


class Normalizer:
    """Stateless mapping from upstream payloads to normalized records"""

    @staticmethod
    def artist(raw: SpotifyArtist) -> NormalizedArtist:
        return NormalizedArtist(
            name=raw.name,
            genres=list(raw.genres[:MAX_GENRES]),
            popularity=_clamp_popularity(raw.popularity),
        )

    @staticmethod
    def track(raw: SpotifyTrack) -> NormalizedTrack:
        return NormalizedTrack(
            name=raw.name,
            primary_artist=raw.primary_artist,
            popularity=_clamp_popularity(raw.popularity),
        )

    @staticmethod
    def playlist(raw: SpotifyPlaylist) -> NormalizedPlaylist:
        return NormalizedPlaylist(
            name=raw.name,
            track_count=max(0, raw.tracks.total),
            is_public=raw.public,
        )

    @classmethod
    def followed_artists(cls, payload: Dict[str, Any]) -> List[NormalizedArtist]:
        page = FollowedArtistsResponse.model_validate(payload).artists
        return [cls.artist(a) for a in page.items if a is not None]

    @classmethod
    def top_artists(cls, payload: Dict[str, Any]) -> List[NormalizedArtist]:
        page = ArtistPage.model_validate(payload)
        return [cls.artist(a) for a in page.items if a is not None]

    @classmethod
    def top_tracks(cls, payload: Dict[str, Any]) -> List[NormalizedTrack]:
        page = TrackPage.model_validate(payload)
        return [cls.track(t) for t in page.items if t is not None]

    @classmethod
    def wrapped_tracks(cls, payload: Dict[str, Any]) -> List[NormalizedTrack]:
        """Play history and saved tracks: {"items": [{"track": {...}}, ...]}"""
        page = TrackItemPage.model_validate(payload)
        return [
            cls.track(item.track)
            for item in page.items
            if item is not None and item.track is not None
        ]

    @classmethod
    def playlists(cls, payload: Dict[str, Any]) -> List[NormalizedPlaylist]:
        page = PlaylistPage.model_validate(payload)
        return [cls.playlist(p) for p in page.items if p is not None]

    @classmethod
    def parser_for(cls, key: str) -> Callable[[Dict[str, Any]], list]:
        if key == "followed_artists":
            return cls.followed_artists
        if key.startswith("top_artists_"):
            return cls.top_artists
        if key.startswith("top_tracks_"):
            return cls.top_tracks
        if key in ("recently_played", "saved_tracks"):
            return cls.wrapped_tracks
        if key == "playlists":
            return cls.playlists
        raise KeyError(f"No parser for upstream request '{key}'")

    @classmethod
    def from_spotify(cls, outcomes: Dict[str, UpstreamOutcome]) -> ListeningProfile:
        """
        Build a ListeningProfile from the fan-out outcomes.

        Failed outcomes and payloads that do not match the expected shape
        leave their collection empty.
        """
        collections: Dict[str, list] = {}
        for key, outcome in outcomes.items():
            if not outcome.ok:
                continue
            try:
                collections[key] = cls.parser_for(key)(outcome.payload)
            except ValidationError as e:
                logger.warning(f"Ignoring malformed '{key}' payload: {e.error_count()} validation error(s)")

        return ListeningProfile(service="spotify", **collections)

    @staticmethod
    def from_apple_bundle(bundle: AppleMusicBundle) -> ListeningProfile:
        return ListeningProfile(
            service="apple",
            recently_played=[
                NormalizedTrack(name=item.name, primary_artist=item.artist)
                for item in bundle.recently_played
            ],
            heavy_rotation=[
                NormalizedTrack(name=item.name, primary_artist=item.artist)
                for item in bundle.heavy_rotation
            ],
            playlists=[
                NormalizedPlaylist(
                    name=p.name,
                    track_count=max(0, p.track_count),
                    is_public=p.is_public,
                )
                for p in bundle.playlists
            ],
            saved_tracks=[
                NormalizedTrack(name=song.name, primary_artist=song.artist)
                for song in bundle.library_songs
            ],
        )
