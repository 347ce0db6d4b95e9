from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contact_gateway.api.v1 import contact
from contact_gateway.core.config import settings
from contact_gateway.core.errors import register_exception_handlers
from contact_gateway.core.logging import setup_logging
from contact_gateway.core.middleware import RequestIdMiddleware
from contact_gateway.core.security_headers import SecurityHeadersMiddleware

# Setup logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    if "challenge" in settings.CONTACT_GATES and not settings.TURNSTILE_SECRET:
        logger.warning(
            "Turnstile is enabled but TURNSTILE_SECRET is not set. "
            "Every contact submission will be rejected!"
        )
    if not settings.ADMIN_TO:
        logger.warning("ADMIN_TO is not set; contact submissions will fail with 500")

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Contact form relay with rate limiting, spam filtering and Turnstile checks.",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

# Request ID Tracing
app.add_middleware(RequestIdMiddleware)

# Security headers on every response, rejections included
app.add_middleware(SecurityHeadersMiddleware)

register_exception_handlers(app)

app.include_router(contact.router, tags=["contact"])


@app.get(
    "/health",
    summary="Health check",
    description="Returns service health metadata for monitoring and uptime checks.",
)
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "contact_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )
