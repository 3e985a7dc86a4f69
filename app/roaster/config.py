"""
Runtime configuration for the roaster.

Settings are read from environment variables (optionally from a .env file)
once at startup. Missing required credentials are fatal; missing Apple Music
credentials only disable the Apple token endpoint.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from roaster.errors import MissingConfigurationError


GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

REQUIRED_ENV = ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "GEMINI_API_KEY")

TRANSPORT_MODES = ("inline", "store")


@dataclass(frozen=True)
class Settings:
    spotify_client_id: str
    spotify_client_secret: str
    generation_api_key: str
    redirect_uri: str = "http://127.0.0.1:3000/callback"
    port: int = 3000
    client_url: str = "http://localhost:5173"
    generation_model: str = "gemini-2.5-flash"
    generation_base_url: str = GEMINI_OPENAI_BASE_URL
    upstream_timeout_seconds: float = 15.0
    generation_timeout_seconds: float = 30.0
    roast_transport: str = "inline"
    roast_ttl_seconds: float = 300.0
    roast_sweep_interval_seconds: float = 300.0
    apple_team_id: Optional[str] = None
    apple_key_id: Optional[str] = None
    apple_private_key: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def apple_music_enabled(self) -> bool:
        return bool(self.apple_team_id and self.apple_key_id and self.apple_private_key)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise MissingConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings(env_file: Optional[str] = ".env") -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env path loaded before reading variables. Values
            already present in the environment win.

    Raises:
        MissingConfigurationError: if a required variable is unset or invalid
    """
    if env_file:
        load_dotenv(env_file)

    missing = [name for name in REQUIRED_ENV if not os.getenv(name)]
    if missing:
        raise MissingConfigurationError(
            f"Missing environment variables: {', '.join(missing)}. Please check your .env file."
        )

    transport = os.getenv("ROAST_TRANSPORT", "inline").lower()
    if transport not in TRANSPORT_MODES:
        raise MissingConfigurationError(
            f"ROAST_TRANSPORT must be one of {', '.join(TRANSPORT_MODES)}, got {transport!r}"
        )

    # Keys pasted into .env usually carry literal "\n" sequences
    private_key = os.getenv("APPLE_PRIVATE_KEY")
    if private_key:
        private_key = private_key.replace("\\n", "\n")

    return Settings(
        spotify_client_id=os.environ["SPOTIFY_CLIENT_ID"],
        spotify_client_secret=os.environ["SPOTIFY_CLIENT_SECRET"],
        generation_api_key=os.environ["GEMINI_API_KEY"],
        redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:3000/callback"),
        port=int(_float_env("PORT", 3000)),
        client_url=os.getenv("CLIENT_URL", "http://localhost:5173").rstrip("/"),
        generation_model=os.getenv("GENERATION_MODEL", "gemini-2.5-flash"),
        generation_base_url=os.getenv("GENERATION_BASE_URL", GEMINI_OPENAI_BASE_URL),
        upstream_timeout_seconds=_float_env("UPSTREAM_TIMEOUT_SECONDS", 15.0),
        generation_timeout_seconds=_float_env("GENERATION_TIMEOUT_SECONDS", 30.0),
        roast_transport=transport,
        roast_ttl_seconds=_float_env("ROAST_TTL_SECONDS", 300.0),
        roast_sweep_interval_seconds=_float_env("ROAST_SWEEP_INTERVAL_SECONDS", 300.0),
        apple_team_id=os.getenv("APPLE_TEAM_ID") or None,
        apple_key_id=os.getenv("APPLE_KEY_ID") or None,
        apple_private_key=private_key or None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
    )
