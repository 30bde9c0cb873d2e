from __future__ import annotations

import os

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from src.application.dtos.common_dto import ActionResponse, ErrorDetail
from src.domain.errors import ErrorCode, ServiceError
from src.infrastructure.observability.logger import logger


def add_default_middlewares(app: FastAPI) -> None:
    # In development/staging allow the usual local frontends;
    # production origins come from CORS_ORIGINS
    env = os.getenv("ENV", "development")

    if env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:3001",
            "http://localhost:5173",  # Vite default
            "http://127.0.0.1:3000",
            "http://127.0.0.1:3001",
            "http://127.0.0.1:5173",
        ]
    else:
        allowed_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Outermost boundary: log anything that escaped and answer with a generic error."""

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        code = exc.code if isinstance(exc, ServiceError) else ErrorCode.INTERNAL_ERROR
        logger.error(
            source=f"{request.method} {request.url.path}",
            message="Unexpected error while handling request",
            code=code,
            context={"path": request.url.path},
            error=exc,
        )
        body = ActionResponse(success=False, error=ErrorDetail(message="An unexpected error occurred", code=code))
        return JSONResponse(body.model_dump(mode="json"), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
