"""
Unit Tests for Pipeline Module
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from conftest import make_settings
from maintenance_search.errors import StorageUnavailableError
from maintenance_search.pipeline.relevance_scorer import RelevanceScorer
from maintenance_search.pipeline.search_session import SearchSession, SearchState
from maintenance_search.schemas.entities import EntityType
from maintenance_search.schemas.history import SearchSuggestion, SuggestionSource
from maintenance_search.schemas.search import SearchCriteria, SearchResult
from maintenance_search.search_api import SearchAPI
from maintenance_search.services.history_service import HistoryService


def result(entity_id: int, title: str = "Result", entity_type=EntityType.RECORD) -> SearchResult:
    return SearchResult(entity_type=entity_type, id=entity_id, title=title)


class TestRelevanceScorer:
    """Tests for RelevanceScorer."""

    def test_title_tiers(self):
        """Test exact, prefix and contains tiers against the title."""
        scorer = RelevanceScorer()

        assert scorer.title_bonus("router", "Router") == 10
        assert scorer.title_bonus("rout", "Router") == 8
        assert scorer.title_bonus("out", "Router") == 5
        assert scorer.title_bonus("switch", "Router") == 0

    def test_score_adds_token_bonus(self):
        """Test full score includes the per-token bonus."""
        scorer = RelevanceScorer()

        assert scorer.score("router", "Router", "") == 11
        assert scorer.score("rout", "Router", "") == 9
        assert scorer.score("out", "Router", "") == 6

    def test_description_match(self):
        """Test description containment and token bonus."""
        scorer = RelevanceScorer()

        assert scorer.score("filter", "Inspection", "Annual filter check") == 2.5

    def test_multi_token_query(self):
        """Test tokens score independently of the whole-query tiers."""
        scorer = RelevanceScorer()

        result = scorer.explain("oil compressor", "Oil Change", "Compressor oil")

        assert result.signals["title"] == 0
        assert result.signals["description"] == 0
        assert result.signals["tokens"] == 2.0
        assert result.score == 2.0

    def test_no_match_scores_zero(self):
        """Test unrelated text scores zero."""
        scorer = RelevanceScorer()

        assert scorer.score("pump", "Router", "Cisco gear") == 0

    def test_rank_is_stable_on_ties(self):
        """Test equal scores keep the merge order."""
        scorer = RelevanceScorer()
        hits = [
            result(1, "Pump B"),
            result(2, "Pump A"),
            result(3, "Main pump", EntityType.MAINTENANCE),
            result(4, "Pump", EntityType.MAINTENANCE),
        ]

        ranked = scorer.rank("pump", hits)

        assert [r.id for r in ranked] == [4, 1, 2, 3]
        assert ranked[0].relevance_score == 11
        assert ranked[1].relevance_score == ranked[2].relevance_score == 9


def make_session(search=None, suggestions=None, history=None, debounce_ms=20):
    search_service = MagicMock()
    search_service.search = search or AsyncMock(return_value=[])
    search_service.advanced_search = AsyncMock(return_value=[])
    suggestion_service = MagicMock()
    suggestion_service.get_suggestions = suggestions or AsyncMock(return_value=[])
    settings = make_settings(debounce_ms=debounce_ms)
    history = history or HistoryService(settings)
    session = SearchSession(search_service, suggestion_service, history, settings)
    return session, search_service, suggestion_service, history


class TestSearchSession:
    """Tests for SearchSession."""

    @pytest.mark.asyncio
    async def test_debounce_collapses_burst(self):
        """Test a keystroke burst triggers one search with the last text."""
        session, search_service, _, _ = make_session()

        for text in ["fi", "fil", "filt", "filter"]:
            session.on_query_changed(text)
        await session.join()

        search_service.search.assert_awaited_once_with("filter", limit=50)

    @pytest.mark.asyncio
    async def test_search_waits_for_debounce_window(self):
        """Test no search starts before the window elapses."""
        session, search_service, _, _ = make_session(debounce_ms=200)

        session.on_query_changed("filter")
        await asyncio.sleep(0.02)

        search_service.search.assert_not_awaited()
        session.close()

    @pytest.mark.asyncio
    async def test_short_query_clears_without_search(self):
        """Test queries under two characters clear state immediately."""
        session, search_service, suggestion_service, _ = make_session(
            search=AsyncMock(return_value=[result(1)]),
        )

        session.on_query_changed("filter")
        await session.join()
        assert session.state == SearchState.RESULTS

        session.on_query_changed("f")
        await session.join()

        assert session.state == SearchState.IDLE
        assert session.results == []
        assert session.suggestions == []
        assert search_service.search.await_count == 1
        suggestion_service.get_suggestions.assert_awaited_once_with("filter")

    @pytest.mark.asyncio
    async def test_short_query_cancels_pending_search(self):
        """Test shortening the query drops the pending debounced search."""
        session, search_service, _, _ = make_session()

        session.on_query_changed("fi")
        session.on_query_changed("f")
        await session.join()

        search_service.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_results_are_discarded(self):
        """Test a superseded search never overwrites newer results."""
        release = asyncio.Event()

        async def search(text, limit):
            if text == "slow":
                await release.wait()
                return [result(1, "slow")]
            return [result(2, "fast")]

        session, _, _, _ = make_session(search=AsyncMock(side_effect=search))
        delivered = []
        session.add_listener(lambda s: delivered.append([r.title for r in s.results]))

        session.execute_search("slow")
        await asyncio.sleep(0)
        await session.execute_search("fast")
        release.set()
        await session.join()

        assert [r.title for r in session.results] == ["fast"]
        assert ["slow"] not in delivered

    @pytest.mark.asyncio
    async def test_sequence_guard_drops_completed_stale_search(self):
        """Test a superseded search that still completes never writes results."""
        release = asyncio.Event()
        finished = []

        async def search(text, limit):
            if text == "slow":
                try:
                    await release.wait()
                except asyncio.CancelledError:
                    # storage call that cannot be interrupted
                    await release.wait()
                finished.append(text)
                return [result(1, "slow")]
            return [result(2, "fast")]

        session, _, _, history = make_session(search=AsyncMock(side_effect=search))
        delivered = []
        session.add_listener(lambda s: delivered.append([r.title for r in s.results]))

        slow = session.execute_search("slow")
        await asyncio.sleep(0)
        await session.execute_search("fast")
        release.set()
        await slow
        await session.join()

        assert finished == ["slow"]
        assert [r.title for r in session.results] == ["fast"]
        assert ["slow"] not in delivered
        assert [e.query for e in await history.list(10)] == ["fast"]

    @pytest.mark.asyncio
    async def test_searching_is_reentrant(self):
        """Test a new query during a search goes straight back to SEARCHING."""
        release = asyncio.Event()

        async def search(text, limit):
            if text == "first":
                await release.wait()
            return [result(1, text)]

        session, _, _, _ = make_session(search=AsyncMock(side_effect=search))
        states = []
        session.add_listener(lambda s: states.append(s.state))

        session.execute_search("first")
        await asyncio.sleep(0)
        session.execute_search("second")
        await session.join()

        assert states == [SearchState.SEARCHING, SearchState.SEARCHING, SearchState.RESULTS]

    @pytest.mark.asyncio
    async def test_failure_sets_failed_state(self):
        """Test storage errors surface as FAILED with a message."""
        session, _, _, history = make_session(
            search=AsyncMock(side_effect=StorageUnavailableError("Database locked")),
        )

        session.on_query_changed("filter")
        await session.join()

        assert session.state == SearchState.FAILED
        assert session.error_message == "Database locked"
        assert session.results == []
        assert await history.count() == 0

    @pytest.mark.asyncio
    async def test_results_are_recorded_in_history(self):
        """Test successful searches land in history in the background."""
        session, _, _, history = make_session(
            search=AsyncMock(return_value=[result(1), result(2)]),
        )

        session.on_query_changed("filter")
        await session.join()

        entries = await history.list(10)
        assert session.state == SearchState.RESULTS
        assert len(entries) == 1
        assert entries[0].query == "filter"
        assert entries[0].result_count == 2

    @pytest.mark.asyncio
    async def test_empty_results_skip_history(self):
        """Test zero-result searches end EMPTY and are not recorded."""
        session, _, _, history = make_session()

        session.on_query_changed("nothing")
        await session.join()

        assert session.state == SearchState.EMPTY
        assert await history.count() == 0

    @pytest.mark.asyncio
    async def test_history_failure_does_not_fail_search(self):
        """Test history write errors are swallowed."""
        history = HistoryService(make_settings())
        history.record = AsyncMock(side_effect=RuntimeError("disk full"))
        session, _, _, _ = make_session(
            search=AsyncMock(return_value=[result(1)]), history=history,
        )

        session.on_query_changed("filter")
        await session.join()

        assert session.state == SearchState.RESULTS
        history.record.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_search_bypasses_debounce(self):
        """Test execute_search runs at once and cancels the pending timer."""
        session, search_service, _, _ = make_session(debounce_ms=10_000)

        session.on_query_changed("filt")
        await session.execute_search("filter")

        search_service.search.assert_awaited_once_with("filter", limit=50)
        assert session.state == SearchState.EMPTY
        await session.join()

    @pytest.mark.asyncio
    async def test_explicit_short_search_is_noop(self):
        """Test a too-short explicit search does nothing."""
        session, search_service, _, _ = make_session()

        task = session.execute_search("f")

        assert task is None
        assert session.state == SearchState.IDLE
        search_service.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unchanged_query_is_not_searched_again(self):
        """Test a debounced repeat of the delivered query is skipped."""
        session, search_service, _, _ = make_session(
            search=AsyncMock(return_value=[result(1)]),
        )

        session.on_query_changed("filter")
        await session.join()
        session.on_query_changed("filter")
        await session.join()

        assert search_service.search.await_count == 1

    @pytest.mark.asyncio
    async def test_suggestions_load_without_debounce(self):
        """Test suggestions arrive even when the search is still pending."""
        suggestion = SearchSuggestion(text="Filter Change", source=SuggestionSource.ENTITY_TYPE)
        session, _, _, _ = make_session(
            suggestions=AsyncMock(return_value=[suggestion]), debounce_ms=10_000,
        )

        session.on_query_changed("Fil")
        await asyncio.sleep(0.01)

        assert session.suggestions == [suggestion]
        session.close()

    @pytest.mark.asyncio
    async def test_suggestion_failure_is_isolated(self):
        """Test a failing suggestion lookup leaves the search intact."""
        session, _, _, _ = make_session(
            search=AsyncMock(return_value=[result(1)]),
            suggestions=AsyncMock(side_effect=RuntimeError("boom")),
        )

        session.on_query_changed("filter")
        await session.join()

        assert session.state == SearchState.RESULTS
        assert session.suggestions == []

    @pytest.mark.asyncio
    async def test_clear_resets_session(self):
        """Test clear drops query and results."""
        session, _, _, _ = make_session(search=AsyncMock(return_value=[result(1)]))

        session.on_query_changed("filter")
        await session.join()
        session.clear()

        snapshot = session.snapshot()
        assert snapshot.state == SearchState.IDLE
        assert snapshot.query == ""
        assert snapshot.results == []


class TestSessionIntegration:
    """End-to-end session over in-memory storage."""

    @pytest.mark.asyncio
    async def test_cost_range_criteria(self, storage):
        """Test advanced criteria run through the session state machine."""
        api = SearchAPI(storage, make_settings())
        session = api.open_session()

        await session.apply_criteria(SearchCriteria(query="", min_cost=50, max_cost=200))
        await session.join()

        assert session.state == SearchState.RESULTS
        assert [r.id for r in session.results] == [11, 12]
        assert all(r.relevance_score == 1.0 for r in session.results)
        entries = await api.history(10)
        assert entries[0].criteria.min_cost == 50

    @pytest.mark.asyncio
    async def test_typing_after_criteria_runs_plain_search(self, storage):
        """Test typing the criteria's query text replaces the advanced results."""
        api = SearchAPI(storage, make_settings())
        session = api.open_session()

        await session.apply_criteria(SearchCriteria(query="Change", min_cost=50))
        await session.join()
        assert [r.id for r in session.results] == [11]

        session.on_query_changed("Change")
        await session.join()

        assert session.state == SearchState.RESULTS
        assert [r.id for r in session.results] == [10, 11]

    @pytest.mark.asyncio
    async def test_typing_feeds_suggestions_and_results(self, storage):
        """Test a debounced query yields ranked results and suggestions."""
        api = SearchAPI(storage, make_settings())
        session = api.open_session()

        session.on_query_changed("Filter")
        await session.join()

        assert session.results[0].title == "Filter Change"
        assert [s.text for s in session.suggestions] == ["Filter Change"]
