"""
ASGI entrypoint.

    uvicorn business_review.main:app
"""
import logging
import sys

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables from .env file before settings are read
load_dotenv()

from .config import settings  # noqa: E402
from .cors_config import configure_cors  # noqa: E402
from .exception_handlers import register_exception_handlers  # noqa: E402
from .lifespan import lifespan  # noqa: E402
from .middleware.logging import LoggingMiddleware  # noqa: E402
from .middleware.request_id import RequestIDMiddleware  # noqa: E402
from .routers import (  # noqa: E402
    admins,
    businesses,
    health,
    locations,
    promotions,
    registrations,
    reviews,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Business Review Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Starlette runs the last added middleware first: request id, then access log
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    configure_cors(app, settings)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(registrations.router)
    app.include_router(reviews.router)
    app.include_router(businesses.router)
    app.include_router(locations.router)
    app.include_router(promotions.router)
    app.include_router(admins.router)
    return app


app = create_app()
