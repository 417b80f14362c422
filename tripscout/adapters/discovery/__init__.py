"""Discovery adapter - remote itinerary search index."""

from .client import DiscoverySearchClient

__all__ = ["DiscoverySearchClient"]
