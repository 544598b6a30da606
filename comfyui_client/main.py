"""
FastAPI app for the ComfyUI client node

Accepts messages from other nodes (router responses, provider job updates,
admin requests) and local job submissions, and serves received images.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import admin, jobs, messages
from .core import JobEventHub, MessageTransport, Settings, build_client_process
from .errors import ClientError

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, transport: Optional[MessageTransport] = None) -> FastAPI:
    """
    Create the client node app

    Args:
        settings: Client settings (read from the environment if omitted)
        transport: Optional transport override, used by tests

    Returns:
        FastAPI app; the ClientProcess is created when the app starts
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown"""
        resolved = settings or Settings.from_env()
        events = JobEventHub()
        app.state.settings = resolved
        app.state.events = events
        app.state.process = build_client_process(resolved, transport=transport, events=events)
        logger.info(f"ComfyUI client {resolved.our_address} starting...")
        yield
        app.state.process.close()
        logger.info("ComfyUI client shutting down...")

    app = FastAPI(
        title="ComfyUI Client Node",
        description="Submits ComfyUI jobs to a provider network and stores the results",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError):
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    # Health check endpoint
    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint"""
        return {
            "status": "healthy",
            "address": str(request.app.state.process.our),
            "event_subscribers": request.app.state.events.subscriber_count,
            "timestamp": datetime.utcnow().isoformat()
        }

    # Include routers
    app.include_router(messages.router)
    app.include_router(jobs.router)
    app.include_router(admin.router)

    return app


app = create_app()
