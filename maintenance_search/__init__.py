"""
Maintenance Search

Search subsystem for maintenance records: debounced queries, relevance
ranking, filter intersection, autocomplete and search history.
"""

from maintenance_search.config import Settings, configure_logging, get_settings
from maintenance_search.search_api import SearchAPI

__all__ = [
    "SearchAPI",
    "Settings",
    "configure_logging",
    "get_settings",
]
