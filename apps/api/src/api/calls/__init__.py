"""Recorded call resources, one router per call type."""

from api.calls.discovery import router as discovery_router
from api.calls.podcast import router as podcast_router
from api.calls.prequal import router as prequal_router
from api.calls.strategy import router as strategy_router

__all__ = [
    "discovery_router",
    "podcast_router",
    "prequal_router",
    "strategy_router",
]
