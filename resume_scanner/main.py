from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resume_scanner.middleware.error_handlers import RequestContextMiddleware
from resume_scanner.routers import resumes
from resume_scanner.routers.dependencies import get_storage
from resume_scanner.utils.config import get_settings
from resume_scanner.utils.logging_config import configure_for_environment, get_logger

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    settings = get_settings()
    logger.info("Resume Scanner API starting up...")
    get_storage().ensure_folder(settings.resume_folder)
    logger.info(f"Resume folder: {settings.resume_folder}")
    if not settings.ai.enabled:
        logger.warning("No AI api key configured - resumes will be parsed with heuristics only")

    yield

    logger.info("Resume Scanner API shutting down...")


app = FastAPI(title="Resume Scanner API", version="1.0.0", lifespan=lifespan)

app.add_middleware(RequestContextMiddleware, slow_request_threshold=2.0)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    return {"message": "Welcome to the Resume Scanner API", "version": "1.0.0", "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy"}


app.include_router(resumes.router, prefix="/api/resume", tags=["resume"])

logger.info("Resume Scanner API initialized successfully")
