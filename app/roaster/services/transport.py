"""
Result transport between the API and the presentation layer.

A RoastResult travels as one URL query parameter: compact JSON, base64url
encoded with the padding stripped. decode(encode(result)) == result.
"""

import base64
import binascii
import logging
from typing import Dict, List

from pydantic import ValidationError

from roaster.errors import TransportDecodeError
from roaster.schemas.profile import ListeningProfile
from roaster.schemas.roast import DataSummary, RoastResult

logger = logging.getLogger(__name__)

SUMMARY_ARTISTS = 10
SUMMARY_TRACKS = 10
SUMMARY_PLAYLISTS = 5


def _unique(values: List[str], limit: int) -> List[str]:
    seen = set()
    out = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        out.append(value)
        if len(out) >= limit:
            break
    return out


def build_summary(profile: ListeningProfile) -> DataSummary:
    """Digest of the profile for display, capped per category."""
    counts: Dict[str, int] = {k: v for k, v in profile.counts().items() if v}
    return DataSummary(
        service=profile.service,
        artists=_unique([a.name for a in profile.all_artists()], SUMMARY_ARTISTS),
        tracks=_unique([f"{t.name} - {t.primary_artist}" for t in profile.all_tracks()], SUMMARY_TRACKS),
        playlists=_unique([p.name for p in profile.playlists], SUMMARY_PLAYLISTS),
        totals=counts,
    )


def serialize(result: RoastResult) -> str:
    return result.model_dump_json(by_alias=True)


def encode(result: RoastResult) -> str:
    raw = serialize(result).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode(token: str) -> RoastResult:
    """
    Inverse of encode().

    Raises:
        TransportDecodeError: if the token is not valid base64url, JSON, or a RoastResult
    """
    if not token:
        raise TransportDecodeError("No roast data available")
    try:
        padded = token + "=" * (-len(token) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        return RoastResult.model_validate_json(raw)
    except (binascii.Error, UnicodeError, ValueError, ValidationError) as e:
        logger.warning(f"Failed to decode roast data: {e}")
        raise TransportDecodeError("Failed to load roast data")


def to_response(result: RoastResult) -> dict:
    """{"roast": ..., "dataSummary": ...} as returned to JSON clients"""
    return result.model_dump(mode="json", by_alias=True)
