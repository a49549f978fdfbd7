#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Dashboard Application
FastAPI app exposing the study session over HTTP

Version: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import config
from core.models import ValidationError
from dashboard import dependencies
from dashboard.api import assistant, challenges, notes, progress, session, sync, tasks
from dashboard.dependencies import ServiceContainer, build_container
from database.storage import StorageError
from services.auth import AuthError
from services.session import ConfirmationRequiredError, NotSignedInError

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Application factory; a prepared container replaces the configured services"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting StudySync dashboard...")
        app.state.started_at = time.time()

        services = container or build_container()
        dependencies.set_container(services)
        try:
            await services.startup()
        except Exception as e:
            logger.error(f"❌ Session restore failed: {e}")

        logger.info(f"🌐 Dashboard available at http://{config.server.host}:{config.server.port}")
        logger.info("✅ Dashboard ready")

        yield

        logger.info("🛑 Stopping StudySync dashboard...")
        try:
            await services.shutdown()
            logger.info("✅ Resources released")
        except Exception as e:
            logger.error(f"❌ Shutdown error: {e}")
        finally:
            dependencies.set_container(None)

    app = FastAPI(
        title="StudySync",
        description="Gamified study tracker: tasks, XP and levels, streaks, challenges, notes and an AI assistant",
        version=VERSION,
        docs_url="/api/docs" if config.server.debug_mode else None,
        redoc_url="/api/redoc" if config.server.debug_mode else None,
        openapi_url="/api/openapi.json" if config.server.debug_mode else None,
        lifespan=lifespan
    )

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} "
            f"- {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = str(process_time)
        return response

    # ===== ERROR HANDLERS =====

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfirmationRequiredError)
    async def confirmation_error_handler(request: Request, exc: ConfirmationRequiredError):
        return JSONResponse(status_code=400, content={"detail": str(exc), "confirmationRequired": True})

    @app.exception_handler(NotSignedInError)
    async def not_signed_in_handler(request: Request, exc: NotSignedInError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(KeyError)
    async def not_found_handler(request: Request, exc: KeyError):
        detail = exc.args[0] if exc.args else "Not found"
        if not isinstance(detail, str):
            detail = f"Record {detail} not found"
        return JSONResponse(status_code=404, content={"detail": detail})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"❌ Storage error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Could not save your data"})

    # ===== ROUTES =====

    for module in (session, tasks, progress, challenges, notes, assistant, sync):
        app.include_router(module.router)

    @app.get("/health")
    async def health_check():
        started_at = getattr(app.state, "started_at", None)
        return {
            "status": "healthy",
            "service": "studysync",
            "version": VERSION,
            "timestamp": datetime.now().isoformat(),
            "uptime": round(time.time() - started_at, 3) if started_at else 0,
            "features": config.get_feature_status(),
        }

    return app

app = create_app()

__all__ = ['create_app', 'app', 'VERSION']
