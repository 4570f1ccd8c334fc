"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from moneyflow.api.v1 import api_router
from moneyflow.config import settings
from moneyflow.core.logging import configure_logging
from moneyflow.services.push_transport import WebPushTransport


tags_metadata: List[dict[str, str]] = [
    {"name": "push", "description": "Register and remove Web Push subscriptions."},
    {"name": "preferences", "description": "Choose which alert categories are delivered."},
    {"name": "notifications", "description": "Send ad-hoc notifications to your devices."},
    {"name": "alerts", "description": "Run scheduled alert categories (cron only)."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Missing VAPID credentials are fatal at startup, not per request
    WebPushTransport.from_settings()
    logger.info("Notification service started")
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Push notification delivery and scheduled finance alerts.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_errors(exc), "message": "Validation failed"},
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


app = create_app()
