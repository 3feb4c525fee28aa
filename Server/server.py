"""
WikiAPI Server - Main FastAPI Application

This module contains the main FastAPI application for the WikiAPI server.
It serves the file listing (list=allimages) and deletion endpoints of a
wiki's web API, plus login, CSRF tokens and admin endpoints.
"""

import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from managers.database_manager import DatabaseManager
from file_storage import InitializeStorage
from jobs import RunJobs

# Configure logging to write to both console and file
# Create logs directory if it doesn't exist
logs_dir = Path("logs")
logs_dir.mkdir(exist_ok=True)

# Create log filename with timestamp
log_filename = logs_dir / f"wikiapi-server-{datetime.now().strftime('%Y-%m-%d')}.log"

# Configure logging with both console and file handlers
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        # Console handler
        logging.StreamHandler(),
        # File handler with rotation (max 10MB per file, keep 10 backup files)
        RotatingFileHandler(
            log_filename,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=10,
            encoding='utf-8'
        )
    ]
)
logger = logging.getLogger(__name__)

# Import database module for shared db_manager instance
import database


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    Manages database initialization and cleanup
    """
    # Startup
    logger.info("WikiAPI Server starting up...")

    database.db_manager = DatabaseManager()

    # Creates tables if needed, but won't recreate admin if exists
    admin_password = database.db_manager.InitializeDatabase()
    if admin_password:
        logger.warning("=" * 60)
        logger.warning("NEW ADMIN USER CREATED")
        logger.warning("Username: Admin")
        logger.warning(f"Password: {admin_password}")
        logger.warning("SAVE THIS PASSWORD - IT WILL NOT BE SHOWN AGAIN!")
        logger.warning("=" * 60)

    logger.info("Database initialized successfully")

    InitializeStorage()
    logger.info("File storage initialized successfully")

    # Pick up deletions queued before the last shutdown
    completed = RunJobs(database.db_manager)
    if completed:
        logger.info(f"Completed {completed} queued jobs")

    logger.info("Server startup complete")

    yield

    # Shutdown
    logger.info("WikiAPI Server shutting down...")
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

app = FastAPI(
    title="WikiAPI Server",
    description="File listing and page/file deletion endpoints of a wiki web API",
    version="1.0.0",
    lifespan=lifespan
)

# ==================== CORS Middleware ====================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Error Handling ====================

@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    """Report unexpected failures in the API error format"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"code": "internal_api_error", "info": f"[{type(exc).__name__}] Internal error"}}
    )


# ==================== Import Routers ====================

from routes import status as status_routes, auth, query, delete
from routes.admin import users as admin_users, settings as admin_settings

# ==================== Include Routers ====================

app.include_router(status_routes.router)
app.include_router(auth.router)
app.include_router(query.router)
app.include_router(delete.router)

# Include admin route modules
app.include_router(admin_users.router)
app.include_router(admin_settings.router)


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    """
    Run the server using uvicorn
    """
    logger.info("Starting WikiAPI Server...")

    # host="0.0.0.0" allows connections from other machines on the network
    # reload=False: restart manually after code changes
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info"
    )
