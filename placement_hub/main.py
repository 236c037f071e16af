"""
Placement Hub - Main Application

FastAPI backend with:
- PostgreSQL for identities, profiles and student rows
- MongoDB GridFS for images, certificates and resumes
- DeepSeek AI for resume generation
- JWT authentication

Run: uvicorn placement_hub.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from placement_hub.api.routes import api_router
from placement_hub.core.config import get_settings
from placement_hub.core.exceptions import PortalError, ValidationFailedError
from placement_hub.db.mongodb import init_mongo_indexes, test_mongo_connection
from placement_hub.db.postgres import test_postgres_connection
from placement_hub.schemas.schemas import ActionResponse

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Placement Hub",
    description="""
    College placement portal.

    ## Features
    - **Authentication**: signup as student or faculty, JWT sessions
    - **Students**: profile form with image and certificate uploads, AI resume
    - **Faculty**: searchable directory of active students, JSON export

    ## Storage
    - PostgreSQL: users, profiles, students (row level policies)
    - MongoDB: uploaded files (GridFS buckets)
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Every expected failure becomes a notification the client can show as-is."""
    violations = exc.violations if isinstance(exc, ValidationFailedError) else []
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = ActionResponse(success=False, notification=exc.to_notification(), violations=violations)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning(f"MongoDB index initialization failed: {e}")


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Placement Hub"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
