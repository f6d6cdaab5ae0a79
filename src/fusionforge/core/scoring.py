"""Fusion candidate scoring and ranking.

Turns aggregated fusion identities into ranked candidates.

For identities with split-read evidence, every breakpoint is considered
in order of decreasing support and emitted as its own candidate unless it
is a novel (non-reference) splice with too few reads. Spanning fragments
that are also split reads of the breakpoint count only as split reads.
Identities with spanning fragments only yield a single candidate when
they reach the span-only threshold.

Score:
    score = junction_read_weight * junction_reads + spanning_frags

Example:
    >>> from fusionforge.core.scoring import CandidateScorer
    >>> scorer = CandidateScorer()
    >>> candidates = scorer.rank(aggregator)
    >>> candidates[0].display_name, candidates[0].score
    ('GENEA--GENEB', 14)
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Iterable

import attrs

from fusionforge.config import ScoringConfig
from fusionforge.core.aggregate import BreakpointKey, FusionIdentity, FusionKey
from fusionforge.core.annotation import GeneKey

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================


class SpliceType(Enum):
    """Breakpoint classification against the reference annotation."""

    ONLY_REF_SPLICE = "ONLY_REF_SPLICE"
    INCL_NON_REF_SPLICE = "INCL_NON_REF_SPLICE"
    NO_JUNCTION_READS_IDENTIFIED = "NO_JUNCTION_READS_IDENTIFIED"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen
class FusionCandidate:
    """A scored fusion prediction.

    Attributes:
        fusion: Ordered gene pair.
        breakpoint: Supporting breakpoint, None for spanning-only candidates.
        splice_type: Breakpoint classification.
        junction_reads: Split reads supporting the breakpoint (sorted).
        spanning_frags: Spanning fragments not already counted as split reads (sorted).
        left_position: Left breakpoint as ``chrom:coord:strand``.
        right_position: Right breakpoint as ``chrom:coord:strand``.
        left_delta: Left distance to the exon boundary, None if not applicable.
        right_delta: Right distance to the exon boundary, None if not applicable.
        score: Composite support score.
    """

    fusion: FusionKey
    breakpoint: BreakpointKey | None
    splice_type: SpliceType
    junction_reads: tuple[str, ...]
    spanning_frags: tuple[str, ...]
    left_position: str
    right_position: str
    left_delta: int | None
    right_delta: int | None
    score: int

    @property
    def display_name(self) -> str:
        return self.fusion.simple_name

    @property
    def fusion_name(self) -> str:
        return self.fusion.complex_name

    @property
    def left_gene(self) -> GeneKey:
        return self.fusion.left

    @property
    def right_gene(self) -> GeneKey:
        return self.fusion.right

    @property
    def junction_count(self) -> int:
        return len(self.junction_reads)

    @property
    def spanning_count(self) -> int:
        return len(self.spanning_frags)


# =============================================================================
# Scorer
# =============================================================================


class CandidateScorer:
    """Score and rank fusion identities.

    Attributes:
        config: Thresholds and score weights.
    """

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    def classify(self, breakpoint: BreakpointKey) -> SpliceType:
        if breakpoint.is_reference_splice:
            return SpliceType.ONLY_REF_SPLICE
        return SpliceType.INCL_NON_REF_SPLICE

    def score(self, junction_count: int, spanning_count: int) -> int:
        return self.config.junction_read_weight * junction_count + spanning_count

    def score_identity(self, identity: FusionIdentity) -> list[FusionCandidate]:
        """Produce candidates for one fusion identity.

        Breakpoints are visited by descending read count, ties broken by
        ascending breakpoint key.

        Args:
            identity: Aggregated evidence.

        Returns:
            Candidates in visiting order; empty when nothing passes.
        """
        if not identity.breakpoints:
            return self._score_spanning_only(identity)

        ordered = sorted(
            identity.breakpoints.items(),
            key=lambda item: (-len(item[1]), item[0]),
        )

        candidates = []
        for breakpoint, reads in ordered:
            splice_type = self.classify(breakpoint)
            if (
                splice_type is SpliceType.INCL_NON_REF_SPLICE
                and len(reads) < self.config.min_novel_junction_support
            ):
                continue

            spanning = identity.spanning_reads - reads
            candidates.append(
                FusionCandidate(
                    fusion=identity.key,
                    breakpoint=breakpoint,
                    splice_type=splice_type,
                    junction_reads=tuple(sorted(reads)),
                    spanning_frags=tuple(sorted(spanning)),
                    left_position=breakpoint.left_position,
                    right_position=breakpoint.right_position,
                    left_delta=breakpoint.left_delta,
                    right_delta=breakpoint.right_delta,
                    score=self.score(len(reads), len(spanning)),
                )
            )
        return candidates

    def _score_spanning_only(self, identity: FusionIdentity) -> list[FusionCandidate]:
        n_spanning = len(identity.spanning_reads)
        if n_spanning < self.config.min_span_only_support:
            return []
        return [
            FusionCandidate(
                fusion=identity.key,
                breakpoint=None,
                splice_type=SpliceType.NO_JUNCTION_READS_IDENTIFIED,
                junction_reads=(),
                spanning_frags=tuple(sorted(identity.spanning_reads)),
                left_position=identity.left_position,
                right_position=identity.right_position,
                left_delta=None,
                right_delta=None,
                score=self.score(0, n_spanning),
            )
        ]

    def rank(self, identities: Iterable[FusionIdentity]) -> list[FusionCandidate]:
        """Score every identity and sort all candidates by descending score.

        Candidates with equal scores keep the order in which they were
        produced.

        Args:
            identities: Fusion identities, typically a FusionAggregator.

        Returns:
            Ranked candidate list.
        """
        candidates: list[FusionCandidate] = []
        n_identities = 0
        for identity in identities:
            n_identities += 1
            candidates.extend(self.score_identity(identity))

        ranked = rank_candidates(candidates)
        logger.info(f"Scored {n_identities:,} fusion identities into {len(ranked):,} candidates")
        return ranked


def rank_candidates(candidates: list[FusionCandidate]) -> list[FusionCandidate]:
    """Sort by descending score, keeping equal scores in production order.

    This is a stable descending sort, not the reverse of a stable ascending
    one, so tied candidates are never reversed.
    """
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def summarize_candidates(candidates: list[FusionCandidate]) -> dict[str, int]:
    """Count candidates per splice type.

    Returns:
        Dictionary with ``n_candidates`` and one count per SpliceType value.
    """
    by_type = Counter(c.splice_type for c in candidates)
    summary = {"n_candidates": len(candidates)}
    for splice_type in SpliceType:
        summary[splice_type.value] = by_type.get(splice_type, 0)
    return summary
