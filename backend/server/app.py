"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Construct the process-wide KitchenContext and tear it down on shutdown
- Translate core errors into the wire error shape
- Register routes
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import AppConfig
from kitchen.errors import DuplicateSessionError, KitchenError, NotFoundError, ValidationError
from observability.logger import log_event
from session.context import KitchenContext

from server.routes import register_routes


_STATUS_BY_ERROR: dict[type[KitchenError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    DuplicateSessionError: 409,
}


def create_app(
    config: AppConfig | None = None,
    context: KitchenContext | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with an injected context (simulated scheduler)
    - Environment-specific setup
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()
    context = context or KitchenContext.from_config(config)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log_event({"event_type": "SERVER_STARTED", "env": config.env})
        try:
            yield
        finally:
            context.shutdown()
            log_event({"event_type": "SERVER_STOPPED"})

    app = FastAPI(title="Smart Kitchen API", version=config.api_version, lifespan=lifespan)

    app.state.config = config
    app.state.kitchen = context

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_error_handlers(app)

    # Routes
    register_routes(app)

    return app


def register_error_handlers(app: FastAPI) -> None:
    """Map core and framework errors onto `{success, error, message}`."""

    @app.exception_handler(KitchenError)
    async def kitchen_error(request: Request, exc: KitchenError) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        status_code = _STATUS_BY_ERROR.get(type(exc), 400)
        log_event({
            "event_type": "REQUEST_REJECTED",
            "path": request.url.path,
            "error": exc.kind,
            "message": exc.message,
            "status_code": status_code,
        })
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": exc.kind, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()) if p != 'body')}: {e.get('msg')}"
            for e in errors
        )
        log_event({
            "event_type": "REQUEST_REJECTED",
            "path": request.url.path,
            "error": ValidationError.kind,
            "message": message,
            "status_code": 400,
        })
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": ValidationError.kind, "message": message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": "endpoint_not_found",
                    "message": f"The endpoint {request.url.path} was not found",
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": "http_error", "message": str(exc.detail)},
        )
