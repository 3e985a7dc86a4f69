from pydantic import BaseModel, Field
from typing import List, Optional, Dict


class NormalizedArtist(BaseModel):
    name: str
    genres: List[str] = Field(default_factory=list, max_length=3)
    popularity: int = Field(0, ge=0, le=100)


class NormalizedTrack(BaseModel):
    name: str
    primary_artist: str
    popularity: Optional[int] = Field(None, ge=0, le=100)


class NormalizedPlaylist(BaseModel):
    name: str
    track_count: int = Field(0, ge=0)
    is_public: bool = False


ARTIST_COLLECTIONS = (
    "followed_artists",
    "top_artists_short_term",
    "top_artists_medium_term",
    "top_artists_long_term",
)

TRACK_COLLECTIONS = (
    "top_tracks_short_term",
    "top_tracks_medium_term",
    "top_tracks_long_term",
    "recently_played",
    "heavy_rotation",
    "saved_tracks",
)

PLAYLIST_COLLECTIONS = ("playlists",)

COLLECTIONS = ARTIST_COLLECTIONS + TRACK_COLLECTIONS + PLAYLIST_COLLECTIONS


class ListeningProfile(BaseModel):
    """
    Everything we know about a user's listening, one list per source.

    An empty list means either "no data" or "that upstream call failed";
    the profile does not record which.
    """
    service: str = "spotify"

    followed_artists: List[NormalizedArtist] = Field(default_factory=list)
    top_artists_short_term: List[NormalizedArtist] = Field(default_factory=list)
    top_artists_medium_term: List[NormalizedArtist] = Field(default_factory=list)
    top_artists_long_term: List[NormalizedArtist] = Field(default_factory=list)

    top_tracks_short_term: List[NormalizedTrack] = Field(default_factory=list)
    top_tracks_medium_term: List[NormalizedTrack] = Field(default_factory=list)
    top_tracks_long_term: List[NormalizedTrack] = Field(default_factory=list)
    recently_played: List[NormalizedTrack] = Field(default_factory=list)
    heavy_rotation: List[NormalizedTrack] = Field(default_factory=list)
    saved_tracks: List[NormalizedTrack] = Field(default_factory=list)

    playlists: List[NormalizedPlaylist] = Field(default_factory=list)

    def collection(self, name: str) -> list:
        if name not in COLLECTIONS:
            raise KeyError(f"Unknown collection: {name}")
        return getattr(self, name)

    def counts(self) -> Dict[str, int]:
        return {name: len(self.collection(name)) for name in COLLECTIONS}

    def total_items(self) -> int:
        return sum(self.counts().values())

    def all_artists(self) -> List[NormalizedArtist]:
        return [a for name in ARTIST_COLLECTIONS for a in self.collection(name)]

    def all_tracks(self) -> List[NormalizedTrack]:
        return [t for name in TRACK_COLLECTIONS for t in self.collection(name)]
