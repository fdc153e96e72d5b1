from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.cache import cache
from .core.config import settings
from .core.database import close_db_connections
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging

from .routers import (
    health, auth, rooms, staff, parents, students,
    leave_types, fee_structures, timetable, audit_logs, notifications
)

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} API ({settings.environment})")

    await cache.connect()
    logger.info("Cache initialized")

    yield

    logger.info(f"Shutting down {settings.app_name} API")
    await cache.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")


app = FastAPI(
    title="School Management API",
    description="Staff, students, parents, rooms, fees and timetables for a single school",
    version=settings.app_version,
    lifespan=lifespan
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(staff.router)
app.include_router(parents.router)
app.include_router(students.router)
app.include_router(leave_types.router)
app.include_router(fee_structures.router)
app.include_router(timetable.router)
app.include_router(audit_logs.router)
app.include_router(notifications.router)


@app.get("/")
async def root():
    return {
        "message": f"{settings.app_name} API",
        "version": settings.app_version,
        "status": "active"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
