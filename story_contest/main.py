from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

import structlog

from story_contest.config import settings
from story_contest.core.exceptions import ContestException, RepositoryException
from story_contest.core.logging_config import configure_logging
from story_contest.routers.assessments import router as assessments_router
from story_contest.routers.competitions import router as competitions_router
from story_contest.routers.cron import router as cron_router
from story_contest.routers.errors import (
    contest_exception_handler,
    repository_exception_handler,
    validation_exception_handler,
)
from story_contest.routers.health import router as health_router
from story_contest.services.database import init_db
from story_contest.services.notifications import get_notifier

logger = structlog.get_logger(__name__)


# SWAGGER UI: tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Competitions"},
    {"name": "Assessments"},
    {"name": "Cron"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# REGISTER EXCEPTION HANDLERS
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ContestException, contest_exception_handler)
app.add_exception_handler(RepositoryException, repository_exception_handler)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS)
app.include_router(health_router)
app.include_router(competitions_router)
app.include_router(assessments_router)
app.include_router(cron_router)


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# STARTUP EVENT
@app.on_event("startup")
async def startup_event():
    configure_logging()
    init_db()
    logger.info("service_started", app=settings.APP_NAME, env=settings.APP_ENV, docs="/docs")


# SHUTDOWN EVENT
@app.on_event("shutdown")
async def shutdown_event():
    get_notifier().close()
    logger.info("service_stopped", app=settings.APP_NAME)


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "story_contest.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
