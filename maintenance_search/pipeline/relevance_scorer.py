"""
Pipeline - Relevance Scorer

Deterministic text relevance over (query, title, description).
"""

from typing import Dict, List
from dataclasses import dataclass

from maintenance_search.schemas.search import SearchResult


EXACT_TITLE_BONUS = 10.0
PREFIX_TITLE_BONUS = 8.0
CONTAINS_TITLE_BONUS = 5.0
DESCRIPTION_BONUS = 2.0
TOKEN_TITLE_BONUS = 1.0
TOKEN_DESCRIPTION_BONUS = 0.5


@dataclass
class RelevanceResult:
    """Relevance scoring result."""
    score: float
    signals: Dict[str, float]


class RelevanceScorer:
    """Scores and ranks search hits."""

    def title_bonus(self, query: str, title: str) -> float:
        """
        Whole-query match tier against the title.

        exact = 10, prefix = 8, contains = 5, otherwise 0.
        """
        query_lower = query.lower()
        title_lower = title.lower()

        if title_lower == query_lower:
            return EXACT_TITLE_BONUS
        elif title_lower.startswith(query_lower):
            return PREFIX_TITLE_BONUS
        elif query_lower in title_lower:
            return CONTAINS_TITLE_BONUS
        return 0.0

    def explain(self, query: str, title: str, description: str) -> RelevanceResult:
        """
        Calculate relevance with a per-signal breakdown.

        Score = Title tier + Description + Tokens (no cap)

        Args:
            query: Raw query text
            title: Result title
            description: Result description

        Returns:
            RelevanceResult with score and breakdown
        """
        query_lower = query.lower()
        title_lower = title.lower()
        description_lower = description.lower()
        signals = {}

        signals["title"] = self.title_bonus(query, title)
        signals["description"] = (
            DESCRIPTION_BONUS if query_lower in description_lower else 0.0
        )

        # Each query token counts on its own, independent of the tiers above
        tokens = 0.0
        for token in query_lower.split():
            if token in title_lower:
                tokens += TOKEN_TITLE_BONUS
            if token in description_lower:
                tokens += TOKEN_DESCRIPTION_BONUS
        signals["tokens"] = tokens

        return RelevanceResult(
            score=max(0.0, sum(signals.values())),
            signals=signals,
        )

    def score(self, query: str, title: str, description: str = "") -> float:
        return self.explain(query, title, description).score

    def rank(self, query: str, results: List[SearchResult]) -> List[SearchResult]:
        """
        Score every hit and sort by score descending.

        The sort is stable: ties keep the incoming (merge) order.
        """
        scored = [
            r.model_copy(update={
                "relevance_score": self.score(query, r.title, r.description),
            })
            for r in results
        ]
        scored.sort(key=lambda r: r.relevance_score, reverse=True)
        return scored
