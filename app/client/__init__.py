"""
Client-side pieces of the unified search: HTTP client, result cache and
the search box controller.
"""

from app.client.api import StudyClient, StudyClientError
from app.client.cache import SearchCache, normalize_query
from app.client.search_box import SearchBoxController, SearchState, navigation_path

__all__ = [
    "StudyClient",
    "StudyClientError",
    "SearchCache",
    "normalize_query",
    "SearchBoxController",
    "SearchState",
    "navigation_path",
]
