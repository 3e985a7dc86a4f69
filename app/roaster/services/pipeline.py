"""
Roast request coordinator.

Drives one request through its stages:

    start -> exchanging-credential -> fetching-upstream -> classifying
          -> building-prompt -> generating -> transporting -> done

Classification may abort with a forbidden or no-data error. Any stage can end
the request in `failed`; there is no retry or resumption.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from roaster.config import Settings
from roaster.errors import GENERIC_ERROR_MESSAGE, InternalError, OAuthDeniedError, RoasterError
from roaster.logging_config import set_stage
from roaster.schemas.apple import AppleMusicBundle
from roaster.schemas.profile import ListeningProfile
from roaster.schemas.roast import RoastResult
from roaster.schemas.upstream import UpstreamOutcome
from roaster.services.classifier import DegradationClassifier
from roaster.services.generation import GenerationClient
from roaster.services.normalizer import Normalizer
from roaster.services.prompt_builder import build_prompt
from roaster.services.roast_store import RoastStore
from roaster.services import transport
from roaster.spotify_client import SpotifyFetcher, exchange_code

logger = logging.getLogger(__name__)


class RoastStage(str, Enum):
    START = "start"
    EXCHANGING_CREDENTIAL = "exchanging-credential"
    FETCHING_UPSTREAM = "fetching-upstream"
    CLASSIFYING = "classifying"
    BUILDING_PROMPT = "building-prompt"
    GENERATING = "generating"
    TRANSPORTING = "transporting"
    DONE = "done"
    FAILED = "failed"


class RoastPipeline:
    """One instance per request; collaborators are shared and injected."""

    def __init__(
        self,
        settings: Settings,
        generator: GenerationClient,
        store: Optional[RoastStore] = None,
        classifier: Optional[DegradationClassifier] = None,
        exchange: Optional[Callable[[str], str]] = None,
        fetcher_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.settings = settings
        self.generator = generator
        self.store = store
        self.classifier = classifier if classifier is not None else DegradationClassifier()
        self.exchange = exchange if exchange is not None else (lambda code: exchange_code(settings, code))
        self.fetcher_factory = fetcher_factory if fetcher_factory is not None else (
            lambda token: SpotifyFetcher(token, requests_timeout=settings.upstream_timeout_seconds)
        )
        self.stage = RoastStage.START
        self.result: Optional[RoastResult] = None
        self.generation_degraded = False
        set_stage(self.stage.value)

    def _enter(self, stage: RoastStage) -> None:
        logger.info(f"Roast stage: {self.stage.value} -> {stage.value}")
        self.stage = stage
        set_stage(stage.value)

    def _fail(self, error: RoasterError) -> RoasterError:
        if error.stage is None:
            error.stage = self.stage.value
        logger.warning(f"Roast failed during {error.stage}: [{error.category.value}] {error.message}")
        self.stage = RoastStage.FAILED
        set_stage(self.stage.value)
        return error

    def _unexpected(self, error: Exception) -> RoasterError:
        logger.error(f"Unexpected error during {self.stage.value}: {error}", exc_info=True)
        return self._fail(InternalError(GENERIC_ERROR_MESSAGE))

    def run_spotify(self, code: Optional[str], error: Optional[str] = None) -> Dict[str, str]:
        """
        Full server-side flow for a Spotify OAuth redirect.

        Returns:
            Query parameters for the presentation redirect (see deliver())

        Raises:
            RoasterError: any per-request failure, with `stage` set
        """
        try:
            if error:
                raise OAuthDeniedError(f"Spotify authorization failed: {error}")
            if not code:
                raise OAuthDeniedError("No authorization code received from Spotify")

            self._enter(RoastStage.EXCHANGING_CREDENTIAL)
            access_token = self.exchange(code)

            self._enter(RoastStage.FETCHING_UPSTREAM)
            outcomes = self.fetcher_factory(access_token).fetch_all()
            profile = Normalizer.from_spotify(outcomes)

            result = self._roast(profile, outcomes)

            self._enter(RoastStage.TRANSPORTING)
            params = self.deliver(result)

            self._enter(RoastStage.DONE)
            return params
        except RoasterError as e:
            raise self._fail(e)
        except Exception as e:
            raise self._unexpected(e) from e

    def run_apple(self, bundle: AppleMusicBundle) -> Dict[str, Any]:
        """Roast a bundle the MusicKit client already fetched; returns the JSON body."""
        try:
            profile = Normalizer.from_apple_bundle(bundle)
            result = self._roast(profile)

            self._enter(RoastStage.TRANSPORTING)
            body = transport.to_response(result)

            self._enter(RoastStage.DONE)
            return body
        except RoasterError as e:
            raise self._fail(e)
        except Exception as e:
            raise self._unexpected(e) from e

    def _roast(
        self,
        profile: ListeningProfile,
        outcomes: Optional[Dict[str, UpstreamOutcome]] = None,
    ) -> RoastResult:
        self._enter(RoastStage.CLASSIFYING)
        self.classifier.classify(profile, outcomes)

        self._enter(RoastStage.BUILDING_PROMPT)
        prompt = build_prompt(profile)

        self._enter(RoastStage.GENERATING)
        outcome = self.generator.generate(prompt)
        self.generation_degraded = outcome.degraded

        self.result = RoastResult(text=outcome.text, summary=transport.build_summary(profile))
        return self.result

    def deliver(self, result: RoastResult) -> Dict[str, str]:
        """
        Query parameters carrying the result to the presentation layer:
        {"data": <base64url>} inline, or {"id": <key>} via the holding store.
        """
        if self.settings.roast_transport == "store" and self.store is not None:
            return {"id": self.store.put(result)}
        return {"data": transport.encode(result)}
