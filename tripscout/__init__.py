"""
TripScout - Travel itinerary search with store fallback and generated suggestions.

Example:
    >>> from tripscout.interfaces.api.deps import get_search_orchestrator
    >>> orchestrator = get_search_orchestrator()
    >>> outcome = await orchestrator.search(RawSearchRequest(activities=["Hiking"]))
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
