"""
Wellness Tracker HTTP API - FastAPI application factory.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import cache_layer, categories, entries, text_log


def create_app(services) -> FastAPI:
    """Build the API around a services container.

    Args:
        services: Services container every route resolves its data through.

    Returns:
        The configured FastAPI application.
    """
    app = FastAPI(
        title="Wellness Tracker API",
        description="""
        Log activities against a two-level category hierarchy and read
        per-category time summaries.

        - **cache-layer**: cached categories, activities and summaries
        - **entries-bulk**: validated bulk inserts
        - **ingest-text-log**: free-text log parsing
        - **update-category**: partial category updates
        """,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=services.config.api_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(cache_layer.router)
    app.include_router(entries.router)
    app.include_router(text_log.router)
    app.include_router(categories.router)

    @app.get("/health", tags=["Health"])
    def health_check():
        """Report that the service is up."""
        return {"status": "healthy", "service": "wellness-api"}

    return app
