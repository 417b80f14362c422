"""
Result Merger - Deduplicate and order candidates from index and store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import ItineraryCandidate, Origin

logger = logging.getLogger(__name__)

__all__ = ["ACCEPTANCE_FLOOR", "ResultMerger", "ranking_key"]

# Nothing is dropped by score; the orchestrator's count policy decides.
ACCEPTANCE_FLOOR = 0.0


def ranking_key(candidate: ItineraryCandidate) -> tuple[float, float, str]:
    """Descending score, then cheaper first, then id."""
    return (-candidate.score, candidate.price, candidate.id)


class ResultMerger:
    """
    Combine indexed and stored candidates into one ordered, unique list.

    Example:
        >>> merged = ResultMerger().merge(indexed, stored)
    """

    def merge(
        self,
        indexed: Iterable[ItineraryCandidate],
        stored: Iterable[ItineraryCandidate] = (),
    ) -> list[ItineraryCandidate]:
        """
        Merge two candidate sets.

        When an id appears in both, the index copy (and its score) wins.
        """
        by_id: dict[str, ItineraryCandidate] = {}
        duplicates = 0

        for candidate in indexed:
            current = by_id.get(candidate.id)
            if current is None or candidate.score > current.score:
                by_id[candidate.id] = candidate.model_copy()

        for candidate in stored:
            if candidate.id in by_id:
                duplicates += 1
                continue
            by_id[candidate.id] = candidate.model_copy()

        merged = [c for c in by_id.values() if c.score >= ACCEPTANCE_FLOOR]
        merged.sort(key=ranking_key)

        logger.debug(
            "Merged %d candidates (%d indexed, %d duplicates dropped)",
            len(merged),
            sum(1 for c in merged if c.origin == Origin.INDEXED),
            duplicates,
        )
        return merged

    def append_generated(
        self,
        ranked: list[ItineraryCandidate],
        generated: Iterable[ItineraryCandidate],
    ) -> list[ItineraryCandidate]:
        """
        Add generated candidates after every real candidate, skipping ids
        already taken.

        ``ranked`` keeps its order, generated candidates are ordered among
        themselves by ``ranking_key``, and their scores are capped at the
        lowest real score so scores never increase down the list.
        """
        taken = {c.id for c in ranked}
        ceiling = min((c.score for c in ranked), default=None)

        extra = []
        for candidate in generated:
            if candidate.id in taken or candidate.origin != Origin.GENERATED:
                continue
            taken.add(candidate.id)
            copy = candidate.model_copy()
            if ceiling is not None:
                copy.score = min(copy.score, ceiling)
            extra.append(copy)

        extra.sort(key=ranking_key)
        return [*ranked, *extra]
