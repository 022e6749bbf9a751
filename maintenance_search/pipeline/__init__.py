"""
Pipeline Module - Query Pipeline

Handles the flow from keystrokes to delivered results:
Keystroke → Debounce → Execute → Rank → Filter → Deliver
"""

from maintenance_search.pipeline.relevance_scorer import RelevanceScorer, RelevanceResult
from maintenance_search.pipeline.search_session import (
    SearchSession,
    SearchState,
    SessionSnapshot,
)

__all__ = [
    "RelevanceScorer",
    "RelevanceResult",
    "SearchSession",
    "SearchState",
    "SessionSnapshot",
]
