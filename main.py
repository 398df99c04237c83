"""
FastAPI Application Entry Point

Integrates:
  - Messenger webhook handler
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --host 0.0.0.0 --port 8080
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import RelayConfig
from transport.messenger.dispatch import Dispatcher
from transport.messenger.sender import MessengerSender
from webhook.messenger import router as messenger_router

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# httpx logs full request URLs at INFO; the Send API URL carries the access token
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def install_relay(app: FastAPI, config: RelayConfig) -> None:
    """Attach config, dispatcher and sender to app.state."""
    app.state.config = config
    app.state.dispatcher = Dispatcher(config)
    app.state.sender = MessengerSender(config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.

    Missing required configuration raises ConfigurationError here,
    which aborts startup.
    """
    # Startup
    if getattr(app.state, "config", None) is None:
        install_relay(app, RelayConfig.from_env())

    config = app.state.config
    logging.getLogger().setLevel(config.log_level)

    logger.info("=" * 60)
    logger.info("Messenger relay starting up...")
    for key, value in config.summary().items():
        logger.info(f"{key}: {value}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Messenger relay shutting down...")


def create_app(config: Optional[RelayConfig] = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Ready configuration; loaded from the environment at
            startup when omitted
    """
    app = FastAPI(
        title="Messenger Relay",
        description="Webhook relay for the Messenger Send API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = None
    if config is not None:
        install_relay(app, config)

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    app.include_router(messenger_router)

    # Health check endpoints
    @app.get("/health/live")
    async def health_live():
        """Live health check (Kubernetes liveness probe)."""
        return {"status": "alive"}

    @app.get("/health/ready")
    async def health_ready(request: Request):
        """Readiness health check (Kubernetes readiness probe)."""
        if getattr(request.app.state, "config", None) is None:
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": "configuration not loaded"},
            )
        return {"status": "ready"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    startup_config = RelayConfig.from_env()
    uvicorn.run(
        create_app(startup_config),
        host="0.0.0.0",
        port=startup_config.port,
    )
