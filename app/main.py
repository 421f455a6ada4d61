"""FastAPI app factory for the local users API stub the probes run against."""
from __future__ import annotations

import os
import time
from collections.abc import Callable
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.api import router as api_router
from app.logging_conf import get_logger, setup_logging
from app.service import users_service

# Configure logging before anything else.
setup_logging()
logger = get_logger("app")

DEFAULT_ORIGINS = "http://localhost:3000"


def allowed_origins() -> list[str]:
    """CORS_ORIGINS is a comma-separated list; `*` is not allowed with credentials."""
    raw = os.getenv("CORS_ORIGINS", DEFAULT_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def seed_demo_user() -> None:
    """Create the account named by SEED_USER_EMAIL/SEED_USER_PASSWORD, if set."""
    email = os.getenv("SEED_USER_EMAIL")
    password = os.getenv("SEED_USER_PASSWORD")
    if not email or not password:
        return
    try:
        users_service.register(username=email.split("@", 1)[0], email=email, password=password)
    except users_service.UserExistsError:
        return
    logger.info("seed.user", extra={"event": "seed_user", "email": email})


def create_app() -> FastAPI:
    app = FastAPI(
        title="DataViz users API (stub)",
        version=os.getenv("APP_VERSION", "0.1.0"),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.on_event("startup")
    async def _on_startup() -> None:
        seed_demo_user()
        logger.info("startup", extra={"event": "startup"})

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        logger.info("shutdown", extra={"event": "shutdown"})

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """Minimal JSON request logging with correlation id.

        - If the client sends X-Request-ID we propagate it; otherwise we mint one
        - Logs a start and end event with method/path/status/elapsed_ms
        - Attaches X-Request-ID header on the response for easy tracing
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "origin": request.headers.get("origin"),
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception as exc:  # Log and re-raise to let FastAPI handle 500
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise exc
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    app.include_router(api_router)

    return app


# ASGI entrypoint for uvicorn: `uvicorn app.main:app --port 5000`
app = create_app()


def main() -> None:
    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
