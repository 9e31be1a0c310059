"""FastAPI application factory for the DLVRIT backend."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from dlvrit.common.config import get_settings
from dlvrit.common.exceptions import CollaboratorError, DlvritError
from dlvrit.common.logging import setup_logging
from dlvrit.common.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "DLVRIT backend with Stripe, Massive.io and email is running."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level, secrets=settings.secret_values())

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DlvritError)
    async def dlvrit_error_handler(request: Request, exc: DlvritError):
        if isinstance(exc, CollaboratorError):
            logger.error(
                "%s failed on %s: status=%s message=%s",
                exc.collaborator, request.url.path, exc.status_code, exc.message,
            )
        else:
            logger.info("Rejected %s: %s", request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error on %s", request.url.path)
        return _error(500, "Internal server error")

    @app.get("/", response_class=PlainTextResponse)
    async def liveness():
        return LIVENESS_TEXT

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    from dlvrit.checkout.router import router as checkout_router

    app.include_router(checkout_router, tags=["checkout"])

    return app
