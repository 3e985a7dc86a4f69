"""
Spotify access: OAuth code exchange and the parallel read fan-out.

Every read the roast needs is issued at once; each one settles into an
UpstreamOutcome instead of raising, so one failing endpoint never sinks the
whole snapshot.
"""

import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, Optional

import requests
import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from roaster.config import Settings
from roaster.errors import OAuthExchangeFailedError
from roaster.schemas.upstream import (
    FailureKind,
    UpstreamFailure,
    UpstreamOutcome,
    UpstreamSuccess,
    failure_kind_for_status,
)

logger = logging.getLogger(__name__)

SCOPE = " ".join([
    "user-follow-read",
    "user-top-read",
    "user-read-recently-played",
    "playlist-read-private",
    "user-library-read",
])

UpstreamRequest = namedtuple("UpstreamRequest", ["key", "method", "kwargs"])

UPSTREAM_REQUESTS = (
    UpstreamRequest("followed_artists", "current_user_followed_artists", {"limit": 50}),
    UpstreamRequest("top_artists_short_term", "current_user_top_artists", {"limit": 20, "time_range": "short_term"}),
    UpstreamRequest("top_artists_medium_term", "current_user_top_artists", {"limit": 20, "time_range": "medium_term"}),
    UpstreamRequest("top_artists_long_term", "current_user_top_artists", {"limit": 20, "time_range": "long_term"}),
    UpstreamRequest("top_tracks_short_term", "current_user_top_tracks", {"limit": 20, "time_range": "short_term"}),
    UpstreamRequest("top_tracks_medium_term", "current_user_top_tracks", {"limit": 20, "time_range": "medium_term"}),
    UpstreamRequest("top_tracks_long_term", "current_user_top_tracks", {"limit": 20, "time_range": "long_term"}),
    UpstreamRequest("recently_played", "current_user_recently_played", {"limit": 50}),
    UpstreamRequest("playlists", "current_user_playlists", {"limit": 50}),
    UpstreamRequest("saved_tracks", "current_user_saved_tracks", {"limit": 50}),
)


def _auth_manager(settings: Settings) -> SpotifyOAuth:
    # Tokens are per request; nothing is cached on disk
    return SpotifyOAuth(
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        redirect_uri=settings.redirect_uri,
        scope=SCOPE,
        open_browser=False,
        cache_handler=MemoryCacheHandler(),
        requests_timeout=settings.upstream_timeout_seconds,
    )


def get_auth_url(settings: Settings) -> str:
    return _auth_manager(settings).get_authorize_url()


def exchange_code(settings: Settings, code: str) -> str:
    """
    Trade an authorization code for an access token.

    Raises:
        OAuthExchangeFailedError: if the token endpoint rejects the code or
            cannot be reached
    """
    try:
        token = _auth_manager(settings).get_access_token(code, as_dict=False, check_cache=False)
    except SpotifyOauthError as e:
        description = getattr(e, "error_description", None) or getattr(e, "error", None) or str(e)
        raise OAuthExchangeFailedError(f"Spotify Auth Error: {description}")
    except requests.exceptions.RequestException as e:
        raise OAuthExchangeFailedError(f"Spotify Auth Error: could not reach token endpoint ({e})")

    if not token:
        raise OAuthExchangeFailedError("Spotify Auth Error: no access token in response")
    return token


class SpotifyFetcher:
    """Issues the fixed set of profile reads concurrently"""

    def __init__(
        self,
        access_token: Optional[str] = None,
        requests_timeout: float = 15,
        max_workers: Optional[int] = None,
        client: Any = None,
    ) -> None:
        if client is None:
            if not access_token:
                raise ValueError("access_token is required when no client is given")
            # No retries: a failed read is reported, not repeated
            client = spotipy.Spotify(
                auth=access_token,
                requests_timeout=requests_timeout,
                retries=0,
                status_retries=0,
            )
        self.sp = client
        self.max_workers = max_workers

    def fetch_one(self, request: UpstreamRequest) -> UpstreamOutcome:
        try:
            payload = getattr(self.sp, request.method)(**request.kwargs)
        except SpotifyException as e:
            kind = failure_kind_for_status(e.http_status)
            logger.warning(f"Spotify read '{request.key}' failed: {kind.value} (HTTP {e.http_status}) {e.msg}")
            return UpstreamFailure(request.key, kind, message=str(e.msg), http_status=e.http_status)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Spotify read '{request.key}' failed: network error {e}")
            return UpstreamFailure(request.key, FailureKind.NETWORK_ERROR, message=str(e))
        except Exception as e:
            logger.warning(f"Spotify read '{request.key}' failed unexpectedly: {e}", exc_info=True)
            return UpstreamFailure(request.key, FailureKind.NETWORK_ERROR, message=str(e))

        # spotipy hands back None when the body was not JSON
        if not isinstance(payload, dict):
            logger.warning(f"Spotify read '{request.key}' returned a non-JSON or non-object body")
            return UpstreamFailure(request.key, FailureKind.MALFORMED_RESPONSE, message="Response body is not a JSON object")

        return UpstreamSuccess(request.key, payload)

    def fetch_all(self, requests_: Iterable[UpstreamRequest] = UPSTREAM_REQUESTS) -> Dict[str, UpstreamOutcome]:
        """
        Run every request in parallel and wait for all of them to settle.

        Returns:
            Dict of request key -> outcome, in request order
        """
        requests_ = list(requests_)
        if not requests_:
            return {}

        outcomes: Dict[str, UpstreamOutcome] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers or len(requests_)) as executor:
            future_map = {executor.submit(self.fetch_one, req): req for req in requests_}
            for future in as_completed(future_map):
                req = future_map[future]
                outcomes[req.key] = future.result()

        ok = sum(1 for o in outcomes.values() if o.ok)
        logger.info(f"Spotify fan-out settled: {ok}/{len(requests_)} reads succeeded")

        return {req.key: outcomes[req.key] for req in requests_}
