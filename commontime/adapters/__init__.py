"""
Adapters layer - Sources of busy intervals (Microsoft Graph, JSON files).
"""

from .graph_client import GraphClient
from .json_busy_source import JsonBusyIntervalSource

__all__ = ["GraphClient", "JsonBusyIntervalSource"]
