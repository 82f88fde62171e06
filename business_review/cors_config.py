"""
CORS configuration.

Call `configure_cors(app, settings)` to attach CORSMiddleware.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.env import is_local_env

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
CORS_HEADERS = [
    "Content-Type", "Authorization", "X-Requested-With", "X-Request-ID",
    "X-Actor-Id", "X-Actor-Name", "X-Actor-Role",
]


def configure_cors(app: FastAPI, settings) -> None:
    """Build the origins list, log it, and attach CORSMiddleware to the app."""
    origins = settings.cors_origins
    allow_credentials = True
    # Credentials are only allowed with explicit origins
    if "*" in origins:
        if not is_local_env():
            logger.warning("CORS: wildcard origin in non-local env, disabling credentials")
        allow_credentials = False
    logger.info("CORS allowed origins: %s", origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )
