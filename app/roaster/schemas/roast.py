from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict


class DataSummary(BaseModel):
    """Small digest of the listening profile shown next to the roast"""
    service: str = "spotify"
    artists: List[str] = Field(default_factory=list)
    tracks: List[str] = Field(default_factory=list)
    playlists: List[str] = Field(default_factory=list)
    totals: Dict[str, int] = Field(default_factory=dict)


class RoastResult(BaseModel):
    """Generated roast plus its display summary, as carried to the presentation layer"""
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(alias="roast")
    summary: DataSummary = Field(alias="dataSummary")


class ErrorResponse(BaseModel):
    error: str
    message: str
