"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Apply process-wide observability switches
- Register routes
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig
from observability.logger import set_enabled

from server.routes import register_routes


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    config defaults to AppConfig.load_from_env(); tests pass their own.
    """
    if config is None:
        config = AppConfig.load_from_env()

    set_enabled(config.enable_json_logs)

    app = FastAPI(title="Chat Session API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    register_routes(app)

    return app
