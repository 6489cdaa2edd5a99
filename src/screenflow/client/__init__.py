"""
HTTP clients for the screen source, analytics sink and generation endpoint.
"""

from .analytics import AnalyticsBuffer, AnalyticsSink
from .api import API_KEY_HEADER, ConfigCache, ScreenSourceClient
from .assistant import AssistantClient

__all__ = ["AnalyticsBuffer", "AnalyticsSink", "API_KEY_HEADER", "ConfigCache", "ScreenSourceClient", "AssistantClient"]
