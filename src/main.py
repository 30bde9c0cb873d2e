from __future__ import annotations

import os
from typing import Iterable

import uvicorn
from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.domain.entities.navigation import DEFAULT_NAVIGATION, NavLink
from src.infrastructure.api.middlewares import add_default_middlewares, add_exception_handlers
from src.infrastructure.api.routes.auth_routes import router as auth_router
from src.infrastructure.api.routes.message_routes import router as message_router
from src.infrastructure.api.routes.page_routes import router as page_router
from src.infrastructure.api.routes.profile_routes import router as profile_router
from src.infrastructure.observability.logger import configure_logging


def create_app(navigation: Iterable[NavLink] | None = None) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Gatehouse Backend",
        version="0.1.0",
        description="""
        ## Gatehouse Backend API

        FastAPI backend for a Supabase-powered web application: authentication
        flows, profile and avatar management, role-gated pages and the
        navigation shell.

        ### Features
        - **Authentication**: Email/password sign-in, sign-up and sign-out with Supabase
        - **Profiles**: Update name and bio, upload and delete avatars
        - **Access control**: Public, authenticated and admin tiers
        - **Navigation**: Links filtered by the caller's role
        - **Structured logging**: JSON records with sensitive fields redacted

        ### Authentication
        Protected endpoints accept either the session cookie set by
        `/auth/sign-in` or a Bearer token:
        ```
        Authorization: Bearer your-jwt-token
        ```

        ### Access denials
        - Pages redirect anonymous callers to `/login?redirect=<path>`
        - Pages redirect signed-in non-admins away from admin pages
        - JSON actions answer **401** / **403** with `{"success": false, "error": {...}}`
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.navigation = tuple(navigation) if navigation is not None else DEFAULT_NAVIGATION
    add_default_middlewares(app)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "gatehouse-backend", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(auth_router)
    app.include_router(page_router)
    app.include_router(profile_router)
    app.include_router(message_router)
    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn on HOST/PORT (defaults 0.0.0.0:8000)."""
    uvicorn.run(
        "src.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENV", "development") == "development",
        proxy_headers=True,
    )


if __name__ == "__main__":
    run()
