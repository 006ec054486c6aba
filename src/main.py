"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api import alcohols, auth, collection, photos, shares, shelf
from src.config import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    Path(settings.photo_storage_dir).mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(
    title="Sake Shelf API",
    description="Personal alcohol collection with AI bottle identification and shared shelves",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routers
app.include_router(auth.router)
app.include_router(shares.router)
app.include_router(shelf.router)
app.include_router(collection.router)
app.include_router(alcohols.router)
app.include_router(photos.router)

# Uploaded photos; the directory is created at startup
app.mount(
    "/storage/photos",
    StaticFiles(directory=settings.photo_storage_dir, check_dir=False),
    name="photos",
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
