"""
Adapters - External service integrations.

All external API calls are wrapped here to isolate domains from third-party changes.
"""

from .discovery import DiscoverySearchClient
from .sqlite import CatalogRepository

__all__ = [
    "DiscoverySearchClient",
    "CatalogRepository",
]
