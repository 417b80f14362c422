"""
CLI Interface - Command-line tools for TripScout.

Provides commands for:
- Itinerary search
- Database setup and catalog seeding
- Serving the API
"""

from .main import app, main

__all__ = ["app", "main"]
