"""
Search Orchestrator - Index first, store fallback, generation last.

State flow for one request:

    normalizing -> querying -> evaluating -> [falling_back] -> [generating] -> done

The store is only consulted when the index fails or under-delivers, and the
generator only when the merged list is still shorter than the minimum.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from tripscout.config.errors import (
    GenerationExhausted,
    IndexSearchError,
    IndexStatus,
    IndexUnavailableError,
    SearchTimeout,
    SearchUnavailable,
    StoreError,
)

from .criteria import CriteriaNormalizer
from .merger import ResultMerger
from .models import (
    IndexSearchResult,
    ItineraryCandidate,
    Origin,
    RawSearchRequest,
    SearchCriteria,
    SearchOutcome,
    SearchPolicy,
    SearchState,
    SearchStep,
)
from .scoring import MatchScorer

if TYPE_CHECKING:
    from .contracts import (
        CandidateGenerator,
        CatalogReader,
        FallbackQuerier,
        IndexSearchAdapter,
    )

logger = logging.getLogger(__name__)

__all__ = ["SearchOrchestrator"]


class SearchOrchestrator:
    """
    Runs one itinerary search end to end.

    Thresholds arrive as a SearchPolicy; nothing is read from settings here.

    Example:
        >>> orchestrator = SearchOrchestrator(index, fallback, generator, catalog)
        >>> outcome = await orchestrator.search({"activities": ["Hiking"], "adults": 2})
        >>> [c.origin for c in outcome.candidates]
    """

    def __init__(
        self,
        index: IndexSearchAdapter,
        fallback: FallbackQuerier,
        generator: CandidateGenerator,
        catalog: CatalogReader,
        policy: SearchPolicy | None = None,
        normalizer: CriteriaNormalizer | None = None,
        merger: ResultMerger | None = None,
        scorer: MatchScorer | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            index: Remote search index
            fallback: Structured store querier
            generator: Itinerary generator
            catalog: Catalog snapshot reader used by the generator
            policy: Count thresholds, retries and time budget
            normalizer: Criteria normalizer
            merger: Result merger
            scorer: Match-score annotator
        """
        self._index = index
        self._fallback = fallback
        self._generator = generator
        self._catalog = catalog
        self.policy = policy or SearchPolicy()
        self._normalizer = normalizer or CriteriaNormalizer()
        self._merger = merger or ResultMerger()
        self._scorer = scorer or MatchScorer()

    async def search(self, raw: RawSearchRequest | dict[str, Any]) -> SearchOutcome:
        """
        Execute a search.

        Args:
            raw: Raw request fields

        Returns:
            Ordered candidates plus an execution trace

        Raises:
            ValidationError: criteria rejected, nothing downstream was called
            SearchTimeout: the request budget ran out
            SearchUnavailable: index and store both failed
        """
        start_time = time.time()
        outcome = SearchOutcome()

        self._enter(outcome, SearchState.NORMALIZING)
        step_start = time.time()
        criteria = self._normalizer.normalize(raw)
        self._record(outcome, "normalize", "completed", step_start)

        try:
            await asyncio.wait_for(
                self._run(criteria, outcome),
                timeout=self.policy.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Search timed out after %.1fs (states: %s)",
                self.policy.timeout_seconds,
                [s.value for s in outcome.states],
            )
            raise SearchTimeout(self.policy.timeout_seconds) from None

        outcome.total_duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Search done: %d results (index=%s, fallback=%s, generated=%d, shortfall=%d) in %.0fms",
            len(outcome.candidates),
            outcome.index_status.value,
            outcome.fallback_used,
            outcome.generated_count,
            outcome.shortfall,
            outcome.total_duration_ms,
        )
        return outcome

    async def _run(self, criteria: SearchCriteria, outcome: SearchOutcome) -> None:
        """Querying through done, under the request budget."""
        policy = self.policy

        speculative: asyncio.Task[list[ItineraryCandidate]] | None = None
        if policy.speculative_fallback:
            speculative = asyncio.create_task(self._fallback.query(criteria))
            speculative.add_done_callback(_discard_result)

        try:
            self._enter(outcome, SearchState.QUERYING)
            indexed, index_error = await self._query_index(criteria, outcome)

            self._enter(outcome, SearchState.EVALUATING)
            stored: list[ItineraryCandidate] = []
            store_failed = False

            if index_error is not None or len(indexed) < policy.min_index_results:
                self._enter(outcome, SearchState.FALLING_BACK)
                outcome.fallback_used = True
                pending, speculative = speculative, None
                try:
                    stored = await self._query_store(criteria, outcome, pending)
                except StoreError as exc:
                    if index_error is not None:
                        logger.error(
                            "Index (%s) and store both failed: %s",
                            index_error.kind.value,
                            exc.message,
                        )
                        raise SearchUnavailable(
                            "Search index and itinerary store are both unavailable",
                            {"index": index_error.to_dict(), "store": exc.to_dict()},
                        ) from exc
                    logger.warning("Store fallback failed, keeping indexed results: %s", exc.message)
                    store_failed = True

            ranked = self._merger.merge(indexed, stored)

            if len(ranked) < policy.min_results:
                ranked = await self._generate(criteria, ranked, outcome, store_failed)

            self._scorer.annotate(ranked, criteria)
            outcome.candidates = ranked
            outcome.shortfall = max(0, policy.min_results - len(ranked))
            self._enter(outcome, SearchState.DONE)
        finally:
            if speculative is not None:
                speculative.cancel()

    async def _query_index(
        self,
        criteria: SearchCriteria,
        outcome: SearchOutcome,
    ) -> tuple[list[ItineraryCandidate], IndexSearchError | None]:
        step_start = time.time()
        try:
            result = await self._search_index(criteria)
        except IndexSearchError as exc:
            outcome.index_status = exc.kind
            self._record(
                outcome,
                "index",
                "failed",
                step_start,
                kind=exc.kind.value,
                error=exc.message,
            )
            logger.warning("Index %s, falling back to store: %s", exc.kind.value, exc.message)
            return [], exc

        outcome.index_status = IndexStatus.EMPTY if result.empty else IndexStatus.OK
        self._record(outcome, "index", "completed", step_start, results=len(result.candidates))
        return [c for c in result.candidates if c.origin == Origin.INDEXED], None

    async def _search_index(self, criteria: SearchCriteria) -> IndexSearchResult:
        """Call the index, retrying only on Unavailable."""
        result = IndexSearchResult()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(IndexUnavailableError),
            stop=stop_after_attempt(1 + self.policy.index_retries),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                result = await self._index.search(criteria)
        return result

    async def _query_store(
        self,
        criteria: SearchCriteria,
        outcome: SearchOutcome,
        pending: asyncio.Task[list[ItineraryCandidate]] | None,
    ) -> list[ItineraryCandidate]:
        step_start = time.time()
        try:
            if pending is not None:
                stored = await pending
            else:
                stored = await self._fallback.query(criteria)
        except StoreError as exc:
            self._record(outcome, "store", "failed", step_start, error=exc.message)
            raise

        self._record(
            outcome,
            "store",
            "completed",
            step_start,
            results=len(stored),
            speculative=pending is not None,
        )
        return stored

    async def _generate(
        self,
        criteria: SearchCriteria,
        ranked: list[ItineraryCandidate],
        outcome: SearchOutcome,
        store_failed: bool,
    ) -> list[ItineraryCandidate]:
        self._enter(outcome, SearchState.GENERATING)
        needed = self.policy.min_results - len(ranked)
        step_start = time.time()

        try:
            catalog = await self._catalog.load_catalog()
        except StoreError as exc:
            self._record(outcome, "generate", "failed", step_start, error=exc.message)
            if not ranked and store_failed:
                raise SearchUnavailable(
                    "Itinerary store and catalog are unavailable",
                    {"catalog": exc.to_dict()},
                ) from exc
            logger.warning("Catalog unavailable, returning %d results: %s", len(ranked), exc.message)
            return ranked

        try:
            generated = self._generator.generate(
                criteria,
                needed,
                catalog,
                exclude_ids={c.id for c in ranked},
            )
        except GenerationExhausted as exc:
            self._record(outcome, "generate", "skipped", step_start, reason=exc.message)
            logger.info("Generation exhausted, returning %d results", len(ranked))
            return ranked

        merged = self._merger.append_generated(ranked, generated)
        outcome.generated_count = len(merged) - len(ranked)
        self._record(
            outcome,
            "generate",
            "completed",
            step_start,
            requested=needed,
            generated=outcome.generated_count,
        )
        return merged

    @staticmethod
    def _enter(outcome: SearchOutcome, state: SearchState) -> None:
        outcome.states.append(state)
        logger.debug("Search state -> %s", state.value)

    @staticmethod
    def _record(
        outcome: SearchOutcome,
        name: str,
        status: str,
        step_start: float,
        **detail: Any,
    ) -> None:
        outcome.steps.append(
            SearchStep(
                name=name,
                status=status,
                duration_ms=(time.time() - step_start) * 1000,
                detail=detail,
            )
        )


def _discard_result(task: asyncio.Task[list[ItineraryCandidate]]) -> None:
    """Observe the outcome of a speculative store query."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("Speculative store query failed: %s", error)
