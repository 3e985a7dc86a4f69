from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, List, Optional


class AppleBundleModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class AppleMusicItem(AppleBundleModel):
    """Recently played / heavy rotation entry as sent by the MusicKit client"""
    name: str = "Unknown"
    artist: str = "Unknown"
    type: Optional[str] = None


class AppleMusicPlaylist(AppleBundleModel):
    name: str = "Unknown"
    track_count: int = Field(0, alias="trackCount")
    is_public: bool = Field(False, alias="isPublic")


class AppleLibrarySong(AppleBundleModel):
    name: str = "Unknown"
    artist: str = "Unknown"
    album: str = "Unknown"


class AppleMusicBundle(AppleBundleModel):
    """Body of POST /api/apple/roast"""
    recently_played: List[AppleMusicItem] = Field(default_factory=list, alias="recentlyPlayed")
    heavy_rotation: List[AppleMusicItem] = Field(default_factory=list, alias="heavyRotation")
    playlists: List[AppleMusicPlaylist] = Field(default_factory=list)
    library_songs: List[AppleLibrarySong] = Field(default_factory=list, alias="librarySongs")


class AppleTokenResponse(BaseModel):
    developerToken: str
