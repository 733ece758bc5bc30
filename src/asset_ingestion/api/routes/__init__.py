"""Route handlers for the API."""

from asset_ingestion.api.routes import gallery, health, uploads

__all__ = ["gallery", "health", "uploads"]
