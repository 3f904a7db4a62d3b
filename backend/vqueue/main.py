from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os

from vqueue.core.config import settings
from vqueue.core.database import SessionLocal, init_db
from vqueue.core.errors import QueueError
from vqueue.core.logging_setup import configure_logging
from vqueue.routes.admin import router as admin_router
from vqueue.routes.health import router as health_router
from vqueue.routes.queue import router as queue_router
from vqueue.routes.super_admin import router as super_admin_router
from vqueue.services.notification_service import close_notification_service
from vqueue.services.seed import seed_demo


logger = logging.getLogger(__name__)


async def queue_error_handler(request: Request, exc: QueueError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_notification_service()


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Virtual Queue API", version="0.1.0", lifespan=lifespan)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(QueueError, queue_error_handler)

    app.include_router(health_router, tags=["health"])
    app.include_router(queue_router, prefix="/queue", tags=["queue"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    app.include_router(super_admin_router, prefix="/super-admin", tags=["super-admin"])

    return app


app = create_app()

# Only seed in development or when explicitly requested
if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
    try:
        init_db()
        with SessionLocal() as db:
            seed_demo(db)
    except Exception:
        logger.exception("demo seed failed")
