import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lecture_app.api.v1.ai import ai_router
from lecture_app.api.v1.attendance import router
from lecture_app.api.v1.lectures import lecture_router
from lecture_app.api.v1.students import str_router
from lecture_app.config import get_settings
from lecture_app.database import database

settings = get_settings()

# Configure logging with UTF-8 encoding
_handlers = [logging.StreamHandler(sys.stdout)]
if settings.log_file:
    _handlers.append(logging.FileHandler(settings.log_file, encoding='utf-8'))

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    try:
        if await database.connect():
            await database.create_tables()
            logger.info("Database connected and tables created")
        else:
            logger.warning("Database unavailable, requests will fail until it is reachable")
    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)

    logger.info("Application startup complete")
    yield

    logger.info("Shutting down application...")
    try:
        await database.disconnect()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Lecture Attendance API",
    description="Lecture schedule, weekly attendance rosters and absence risk forecast",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(router)
app.include_router(lecture_router)
app.include_router(str_router)
app.include_router(ai_router)


@app.get("/")
async def root():
    return {
        "message": "Welcome to Lecture Attendance API",
        "version": "1.0.0",
        "endpoints": {
            "attendance": "/attendance",
            "lectures": "/lectures",
            "students": "/students",
            "forecast": "/ai/forecast",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    try:
        db_status = await database.check_connection()
        return {
            "status": "healthy" if db_status else "degraded",
            "database": "connected" if db_status else "disconnected"
        }
    except Exception as e:
        logger.error(f"Health check error: {e}")
        return {
            "status": "error",
            "database": "error"
        }


# Error handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if str(exc) else "Unknown error"
        }
    )


def run():
    uvicorn.run("lecture_app.main:app", host=settings.app_host, port=settings.app_port, reload=False)


if __name__ == "__main__":
    run()
