"""FastAPI application entry point for the asset ingestion API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from asset_ingestion.api.routes import gallery, health, uploads

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# Storage roots and DB_URL may come from a local .env file.
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup and clean up on shutdown."""
    from asset_ingestion.data.db import init_db

    init_db()
    yield


app = FastAPI(
    title="Asset Ingestion API",
    description="Upload, extract, name and index project assets",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(uploads.router, prefix="/api")
app.include_router(gallery.router, prefix="/api")


def main() -> None:
    """Start the development server."""
    import uvicorn

    uvicorn.run(
        "asset_ingestion.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
