"""
Main FastAPI application
School Timetable Auto-Scheduler Backend
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from school_timetable import config
from school_timetable.logging_config import setup_logging
from school_timetable.models.database import close_db, init_db
from school_timetable.routes import timetables

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down...")
    close_db()


app = FastAPI(
    title="School Timetable Auto-Scheduler",
    description="Per-class timetable generation with teacher availability and conflict reporting",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(timetables.router)


@app.get("/health")
async def health_check():
    return {
        "status": "OK",
        "environment": config.ENV,
        "message": "School Timetable Auto-Scheduler is running"
    }


@app.get("/")
async def root():
    """Root endpoint with API info"""
    return {
        "name": "School Timetable Auto-Scheduler",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "auto_generate": "POST /api/timetables/auto-generate",
            "resolve_teachers": "POST /api/timetables/resolve-teachers",
            "list": "GET /api/timetables?classId=...",
            "create_entry": "POST /api/timetables",
            "entry": "GET|PUT|DELETE /api/timetables/{entry_id}",
            "activate": "POST /api/timetables/activate",
            "discard": "POST /api/timetables/discard",
            "validate": "POST /api/timetables/validate",
            "docs": "/docs",
        }
    }


# 404 handler
@app.exception_handler(404)
async def not_found_handler(request, exc):
    detail = getattr(exc, "detail", None) or "Endpoint not found"
    return JSONResponse(
        status_code=404,
        content={"detail": detail}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
