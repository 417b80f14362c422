"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the repository, the index client and the
search orchestrator. Settings are read here and nowhere deeper.
"""

from __future__ import annotations

from functools import lru_cache

from tripscout.adapters.discovery import DiscoverySearchClient
from tripscout.adapters.sqlite import CatalogRepository
from tripscout.config import get_settings
from tripscout.domains.generation import ItineraryGenerator
from tripscout.domains.search import (
    MatchScorer,
    ScoreWeights,
    SearchOrchestrator,
    SearchPolicy,
    StoreFallbackQuerier,
)


@lru_cache
def get_catalog_repository() -> CatalogRepository:
    """Get catalog repository singleton."""
    settings = get_settings()
    return CatalogRepository(settings.db_path)


@lru_cache
def get_index_client() -> DiscoverySearchClient:
    """Get search index client singleton."""
    return DiscoverySearchClient.from_settings(get_settings())


@lru_cache
def get_search_orchestrator() -> SearchOrchestrator:
    """Get search orchestrator singleton."""
    settings = get_settings()
    repo = get_catalog_repository()

    return SearchOrchestrator(
        index=get_index_client(),
        fallback=StoreFallbackQuerier(repo),
        generator=ItineraryGenerator(default_trip_days=settings.generation_default_trip_days),
        catalog=repo,
        policy=SearchPolicy.from_settings(settings),
        scorer=MatchScorer(ScoreWeights.from_settings(settings)),
    )


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    repo = get_catalog_repository()
    await repo.initialize()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    await get_catalog_repository().close()
    await get_index_client().close()
