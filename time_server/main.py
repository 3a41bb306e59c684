"""
FastAPI backend for the Time Tool Server
Main application entry point with middleware, routes, and startup configuration
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, Counter, Histogram

from time_server.config.settings import get_settings
from time_server.api import health, tools
from time_server.ranges.expression_parser import get_expression_parser
from time_server.utils.logging import setup_logging

logger = structlog.get_logger(__name__)
settings = get_settings()

# Prometheus metrics
request_count = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
request_duration = Histogram('http_request_duration_seconds', 'HTTP request duration')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events"""
    setup_logging(settings.log_level, settings.log_json)
    parser = get_expression_parser()
    logger.info(
        "Time tool server started",
        environment=settings.environment,
        timezone=parser.timezone_name,
    )

    yield

    logger.info("Shutting down time tool server")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Resolve natural-language time descriptions into filter boundaries",
    version=settings.app_version,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Prometheus metrics collection middleware"""
    with request_duration.time():
        response = await call_next(request)

    request_count.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    return response


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Request logging middleware"""
    logger.info(
        "HTTP request",
        method=request.method,
        path=request.url.path,
        client=request.client.host if request.client else None
    )

    response = await call_next(request)

    logger.info(
        "HTTP response",
        status_code=response.status_code,
        method=request.method,
        path=request.url.path
    )

    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        path=request.url.path,
        method=request.method
    )

    if settings.is_production:
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )
    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Internal server error: {str(exc)}",
            "type": exc.__class__.__name__
        }
    )


# Include routers
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(tools.router, prefix="/tools", tags=["Tools"])


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return PlainTextResponse(generate_latest().decode('utf-8'), media_type=CONTENT_TYPE_LATEST)


@app.get("/")
async def root() -> Dict[str, Any]:
    """Root endpoint with service information"""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "description": "Resolve natural-language time descriptions into filter boundaries",
        "tools": "/tools",
        "health_check": "/health",
        "metrics": "/metrics"
    }


def run() -> None:
    """Start the server; startup failures are logged, not raised"""
    try:
        uvicorn.run(
            "time_server.main:app",
            host=settings.host,
            port=settings.port,
            reload=settings.debug,
            log_level=settings.log_level.lower()
        )
    except Exception as e:
        logger.error("Error starting time tool server", error=str(e), exc_info=True)


if __name__ == "__main__":
    run()
