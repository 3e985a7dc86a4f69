import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from roaster.apple_music import mint_developer_token
from roaster.config import Settings, load_settings
from roaster.errors import (
    GENERIC_ERROR_MESSAGE,
    ErrorCategory,
    InvalidRequestError,
    MissingConfigurationError,
    RoasterError,
)
from roaster.logging_config import setup_logging
from roaster.schemas.apple import AppleMusicBundle, AppleTokenResponse
from roaster.schemas.roast import ErrorResponse
from roaster.services import transport
from roaster.services.generation import GenerationClient
from roaster.services.pipeline import RoastPipeline
from roaster.services.roast_store import RoastStore
from roaster.services.scheduler_service import HousekeepingScheduler
from roaster.spotify_client import get_auth_url

logger = logging.getLogger(__name__)


def error_redirect_url(client_url: str, message: str, category: ErrorCategory, stage: Optional[str] = None) -> str:
    params = {"message": message, "category": category.value}
    if stage:
        params["stage"] = stage
    return f"{client_url}/error?" + urlencode(params)


def _error_json(status_code: int, category: ErrorCategory, message: str) -> JSONResponse:
    body = ErrorResponse(error=category.value, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid request: " + "; ".join(parts)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RoastStore:
    return request.app.state.store


def get_pipeline(request: Request) -> RoastPipeline:
    state = request.app.state
    return RoastPipeline(
        settings=state.settings,
        generator=state.generator,
        store=state.store,
        exchange=state.exchange,
        fetcher_factory=state.fetcher_factory,
    )


def create_app(
    settings: Optional[Settings] = None,
    generator: Optional[GenerationClient] = None,
    store: Optional[RoastStore] = None,
    exchange=None,
    fetcher_factory=None,
) -> FastAPI:
    """
    Build the API.

    Collaborators default to the real implementations built from settings;
    tests pass stubs.

    Raises:
        MissingConfigurationError: if settings are not given and the
            environment lacks required credentials
    """
    if settings is None:
        settings = load_settings()

    scheduler = HousekeepingScheduler()
    if store is None:
        store = RoastStore(ttl_seconds=settings.roast_ttl_seconds)
    if generator is None:
        generator = GenerationClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler.add_sweep_job(store, settings.roast_sweep_interval_seconds)
        scheduler.start()
        if not settings.apple_music_enabled:
            logger.warning("Apple Music credentials not set; /api/apple/token is disabled")
        logger.info(f"Music Taste Roaster ready (redirect URI: {settings.redirect_uri}, transport: {settings.roast_transport})")
        try:
            yield
        finally:
            scheduler.shutdown()

    app = FastAPI(title="Music Taste Roaster API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        error = InvalidRequestError(_validation_message(exc))
        logger.warning(f"Rejected request to {request.url.path}: {error.message}")
        return _error_json(error.status_code, error.category, error.message)

    app.state.settings = settings
    app.state.generator = generator
    app.state.store = store
    app.state.scheduler = scheduler
    app.state.exchange = exchange
    app.state.fetcher_factory = fetcher_factory

    @app.get("/health")
    def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/login")
    def spotify_login(settings: Settings = Depends(get_settings)):
        return RedirectResponse(get_auth_url(settings))

    @app.get("/callback")
    def spotify_callback(
        code: Optional[str] = None,
        error: Optional[str] = None,
        settings: Settings = Depends(get_settings),
        pipeline: RoastPipeline = Depends(get_pipeline),
    ):
        """
        Spotify OAuth redirect target.

        Runs the whole roast and redirects to the presentation layer with
        either the result or an error message.
        """
        try:
            params = pipeline.run_spotify(code, error)
        except RoasterError as e:
            return RedirectResponse(error_redirect_url(settings.client_url, e.message, e.category, e.stage))
        except Exception as e:
            logger.error(f"Callback failed during {pipeline.stage.value}: {e}", exc_info=True)
            return RedirectResponse(error_redirect_url(settings.client_url, GENERIC_ERROR_MESSAGE, ErrorCategory.INTERNAL))

        return RedirectResponse(f"{settings.client_url}/roast?" + urlencode(params))

    @app.get("/api/apple/token", response_model=AppleTokenResponse)
    def apple_token(settings: Settings = Depends(get_settings)):
        try:
            token = mint_developer_token(settings)
        except MissingConfigurationError as e:
            return _error_json(e.status_code, e.category, e.message)
        return AppleTokenResponse(developerToken=token)

    @app.post("/api/apple/roast")
    def apple_roast(bundle: AppleMusicBundle, pipeline: RoastPipeline = Depends(get_pipeline)):
        try:
            return pipeline.run_apple(bundle)
        except RoasterError as e:
            return _error_json(e.status_code, e.category, e.message)
        except Exception as e:
            logger.error(f"Apple roast failed during {pipeline.stage.value}: {e}", exc_info=True)
            return _error_json(500, ErrorCategory.INTERNAL, GENERIC_ERROR_MESSAGE)

    @app.get("/api/roast")
    def decode_roast(data: str = ""):
        """Presentation helper: turn a ?data= token back into the roast."""
        try:
            result = transport.decode(data)
        except RoasterError as e:
            return _error_json(e.status_code, e.category, e.message)
        return transport.to_response(result)

    @app.get("/api/roast/{key}")
    def stored_roast(key: str, store: RoastStore = Depends(get_store)):
        result = store.pop(key)
        if result is None:
            raise HTTPException(status_code=404, detail="Roast not found or expired")
        return transport.to_response(result)

    return app


def run() -> None:
    """Console entry point: load config, configure logging, serve."""
    import uvicorn

    try:
        settings = load_settings()
    except MissingConfigurationError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        print("   Required: SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, GEMINI_API_KEY", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_file)
    app = create_app(settings)

    logger.info(f"🎵 Music Taste Roaster API on http://127.0.0.1:{settings.port}")
    logger.info(f"   Redirect URI: {settings.redirect_uri} (make sure it is added to your Spotify app settings)")
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
