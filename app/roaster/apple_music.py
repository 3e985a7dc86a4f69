"""Apple Music developer token issuance for the browser-side MusicKit flow."""

import logging
import time
from typing import Optional

import jwt  # PyJWT

from roaster.config import Settings
from roaster.errors import MissingConfigurationError

logger = logging.getLogger(__name__)

# Apple accepts developer tokens valid for up to six months
DEFAULT_TOKEN_TTL_SECONDS = 12 * 60 * 60


def _require_apple_keys(settings: Settings) -> None:
    if not settings.apple_music_enabled:
        raise MissingConfigurationError(
            "Apple Music is not configured. Set APPLE_TEAM_ID, APPLE_KEY_ID and APPLE_PRIVATE_KEY."
        )


def mint_developer_token(
    settings: Settings,
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    now: Optional[int] = None,
) -> str:
    """
    Sign an ES256 developer token for MusicKit.

    Raises:
        MissingConfigurationError: if the Apple credentials are not all set
    """
    _require_apple_keys(settings)
    issued_at = int(time.time()) if now is None else now
    payload = {"iss": settings.apple_team_id, "iat": issued_at, "exp": issued_at + ttl_seconds}
    token = jwt.encode(
        payload,
        settings.apple_private_key,
        algorithm="ES256",
        headers={"kid": settings.apple_key_id},
    )
    logger.info(f"Minted Apple Music developer token (kid={settings.apple_key_id}, ttl={ttl_seconds}s)")
    return token
