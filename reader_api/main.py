"""
FastAPI main application for the Reading Book API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reader_api.auth import AuthService, build_password_context
from reader_api.catalog import CatalogService
from reader_api.config import config as api_config
from reader_api.database import LibraryDatabase
from reader_api.dependencies import get_library_database
from reader_api.interactions import InteractionService
from reader_api.models import ErrorResponse, HealthResponse
from reader_api.routers import auth, books, interactions
from utilities.config import config
from utilities.logger import InteractionLogger, setup_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Reading Book API")

    library_db = LibraryDatabase(config.mongodb_url, config.mongodb_database)
    try:
        await library_db.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    database = library_db.database
    app.state.library_db = library_db
    app.state.catalog_service = CatalogService(
        database,
        top_limit=config.top_books_limit,
        latest_limit=config.latest_books_limit,
    )
    app.state.interaction_service = InteractionService(database, InteractionLogger("reader_api.interactions"))
    app.state.auth_service = AuthService(
        database,
        build_password_context(api_config.password_schemes, api_config.bcrypt_rounds),
    )

    yield

    logger.info("Shutting down Reading Book API")
    await library_db.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code
        ).model_dump(),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed parameters and bodies as 400."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error="Invalid request parameters",
            detail=problems,
            status_code=status.HTTP_400_BAD_REQUEST
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    return "<h1>Reading Book API</h1>"


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(library_db: LibraryDatabase = Depends(get_library_database)):
    """Health check endpoint."""
    health_info = await library_db.health_check()
    db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


# Flag routers first so /books/like and /books/save win over /books/{book_id}
app.include_router(interactions.like_router)
app.include_router(interactions.save_router)
app.include_router(books.router)
app.include_router(auth.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "reader_api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower()
    )
