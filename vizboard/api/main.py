# vizboard/api/main.py
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import time
import uuid
from vizboard.core.config import settings
from vizboard.api.dependencies.database import init_database, check_database_connection
from vizboard.utils.logger import bind_request_context, clear_request_context, get_logger
from vizboard.utils.exceptions import APIException, handle_exception

# Import routers
from vizboard.api.routers import auth, csv, dashboards, datasets
from vizboard.api.routers import settings as settings_router

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown"""
    # Startup
    logger.info(f"Starting {settings.project_name} API...", environment=settings.environment)
    logger.debug("Loaded configuration", config=settings.to_dict())

    # Initialize database
    if not check_database_connection():
        logger.error("Failed to connect to database")
        raise RuntimeError("Database connection failed")

    init_database()

    logger.info(
        "API startup complete",
        upload_dir=settings.files.upload_dir,
        data_dir=settings.files.data_dir,
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.project_name} API...")


# Create FastAPI app
app = FastAPI(
    title=f"{settings.project_name} API",
    description="CSV datasets, chart dashboards and user settings",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


# Add request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Tag the request with an id, add timing and security headers, then log it"""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    bind_request_context(request_id=request_id)
    start_time = time.perf_counter()

    try:
        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value

        logger.log_api_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=process_time * 1000,
            client=request.client.host if request.client else None,
        )
        return response
    finally:
        clear_request_context()


# Global exception handlers
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle API exceptions"""
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            error_code=exc.error_code,
            method=request.method,
            path=request.url.path,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.detail)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests in the same envelope as ValidationError"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "VALIDATION_ERROR",
            "message": message,
            "details": {"field": field} if field else {},
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and other framework errors use the standard envelope"""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route {request.method} {request.url.path} not found"
        error = "NOT_FOUND"
    else:
        message = str(exc.detail)
        error = "HTTP_ERROR"

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": error, "message": message, "details": {}},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last resort: log with request context and hide details in production"""
    request_logger = get_logger(__name__).bind(
        method=request.method, path=request.url.path
    )
    content = handle_exception(request_logger, exc, settings.is_production)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "success": True,
        "status": "healthy",
        "environment": settings.environment,
        "version": settings.version,
        "database": "connected" if check_database_connection() else "disconnected",
        "features": {
            "max_upload_size_mb": settings.files.max_upload_size_mb,
            "max_page_size": settings.csv.max_page_size,
        },
    }


# Include routers
app.include_router(auth.router, tags=["Authentication"])
app.include_router(datasets.router, tags=["Datasets"])
app.include_router(dashboards.router, tags=["Dashboards"])
app.include_router(csv.router, tags=["CSV"])
app.include_router(settings_router.router, tags=["Settings"])


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "success": True,
        "message": f"Welcome to {settings.project_name} API",
        "version": settings.version,
        "docs": "/docs" if not settings.is_production else None,
        "endpoints": {
            "health": "/health",
            "auth": "/auth",
            "datasets": "/Dataset",
            "dashboards": "/Dashboard",
            "csv": "/api/csv",
            "settings": "/settings",
        },
    }


def main():
    """Run the API with uvicorn"""
    import uvicorn

    uvicorn.run(
        "vizboard.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.is_development and settings.api.debug,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
