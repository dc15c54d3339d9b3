from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from marketplace import __version__
from marketplace.core.config import get_settings
from marketplace.core.logger import configure_logging
from marketplace.api.errors import register_exception_handlers
from marketplace.api.middleware.rate_limit import RateLimitMiddleware
from marketplace.api.routers import (
    access,
    applications,
    auth,
    dashboard,
    events,
    health,
    inquiries,
    tickets,
    uploads,
)

settings = get_settings()

configure_logging(settings)

app = FastAPI(
    title=settings.app_name,
    description="Event ticketing marketplace with seller and event approval workflows",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

register_exception_handlers(app)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=not settings.debug,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting on sign-in, sign-up and password reset
if settings.rate_limit_enabled:
    app.add_middleware(RateLimitMiddleware, settings=settings)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(applications.router, prefix="/api")
app.include_router(events.router, prefix="/api")
app.include_router(tickets.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(access.router, prefix="/api")
app.include_router(uploads.router, prefix="/api")
app.include_router(inquiries.router, prefix="/api")
app.include_router(health.router)

# Uploaded event images
Path(settings.media_root).mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=settings.media_root), name="media")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
