"""StarWiki HTTP service: app factory, lifespan and health endpoint."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from starwiki.api.container import Container, get_container
from starwiki.api.dependencies import limiter
from starwiki.api.routes.wiki import router as wiki_router
from starwiki.infrastructure.config.model_validator import validate_models_config
from starwiki.infrastructure.resilience import get_all_breakers
from starwiki.shared.logging import setup_logging

log = structlog.get_logger()


def configure_logging(container: Container) -> None:
    cfg = container.config
    setup_logging(
        level=cfg.log_level,
        file_path=cfg.log_file or "",
        rotation_max_mb=cfg.log_rotation_max_mb,
        rotation_backups=cfg.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = get_container()
    configure_logging(container)
    wiki = container.config.wiki
    log.info(
        "starwiki_starting",
        provider=container.config.llm.provider,
        checkpoint_dir=wiki.checkpoint_dir,
        dist_dir=wiki.dist_dir,
    )
    # Missing models are reported, not fatal: pages fail soft at generation time.
    await validate_models_config(container.llm, container.config)
    yield
    close = getattr(container.llm, "close", None)
    if close is not None:
        try:
            await close()
        except Exception:  # noqa: BLE001
            log.debug("llm_close_failed", exc_info=True)
    log.info("starwiki_stopped")


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app; CORS origins come from the container config."""
    container = container or get_container()
    application = FastAPI(
        title="StarWiki",
        version="0.1.0",
        description="Grounded wiki page drafting with local LLMs",
        lifespan=lifespan,
    )
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=container.config.security.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    application.include_router(wiki_router)
    application.add_api_route("/health", health, methods=["GET"])
    return application


@limiter.limit("100/minute")
async def health(request: Request) -> dict:
    """Backend reachability and breaker states."""
    container = get_container()
    return {
        "status": "ok",
        "service": "starwiki",
        "llm_provider": container.config.llm.provider,
        "llm_available": await container.llm.is_available(),
        "circuit_breakers": get_all_breakers(),
    }


app = create_app()
