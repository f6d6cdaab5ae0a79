"""Breakpoint-to-exon matching.

Maps one side of a chimeric alignment onto the nearest annotated splice
boundary of every gene the alignment overlaps.

For a breakpoint on the donor side of a read aligned in the same
orientation as the gene (sense), the relevant boundary is the exon's 3'
end; on the acceptor side it is the exon's 5' end. For antisense
alignments the two are exchanged.

Example:
    >>> from fusionforge.core.matcher import BreakpointMatcher, Side
    >>> matcher = BreakpointMatcher(index)
    >>> matches = matcher.match("chr1", 1200, "+", Side.DONOR, 1101, "100M")
    >>> [(m.gene_key.gene_name, m.delta) for m in matches]
    [('GENEA', 0)]
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Hashable, Iterable, TypeVar

import attrs

from fusionforge.core.annotation import Exon, GeneKey
from fusionforge.core.cigar import resolve_cigar
from fusionforge.core.index import FeatureIndex

T = TypeVar("T")


# =============================================================================
# Enums
# =============================================================================


class Side(Enum):
    """Which side of the fusion junction a breakpoint belongs to."""

    DONOR = "donor"
    ACCEPTOR = "acceptor"


class Orientation(Enum):
    """Alignment orientation relative to the matched gene."""

    SENSE = "sense"
    ANTISENSE = "antisense"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen
class ExonMatch:
    """Nearest splice boundary of one gene for one breakpoint side.

    Attributes:
        gene_key: Matched gene.
        chromosome: Chromosome of the breakpoint.
        breakpoint: Breakpoint coordinate that was matched (1-based).
        strand: Alignment strand of the breakpoint side.
        exon_boundary: Coordinate of the matched exon boundary.
        delta: Absolute distance from breakpoint to exon boundary.
        orientation: Sense or antisense relative to the gene.
    """

    gene_key: GeneKey
    chromosome: str
    breakpoint: int
    strand: str
    exon_boundary: int
    delta: int
    orientation: Orientation

    @property
    def is_sense(self) -> bool:
        return self.orientation is Orientation.SENSE


# =============================================================================
# Combinators
# =============================================================================


def keep_min_per_key(
    items: Iterable[T],
    key: Callable[[T], Hashable],
    sort_key: Callable[[T], object],
) -> list[T]:
    """Keep the minimal item per group, ties going to the first seen.

    Items are stably sorted by ``sort_key`` and the first item of each
    ``key`` group is kept; the result is in ascending ``sort_key`` order.
    """
    seen: set[Hashable] = set()
    kept = []
    for item in sorted(items, key=sort_key):
        group = key(item)
        if group in seen:
            continue
        seen.add(group)
        kept.append(item)
    return kept


def boundary_for(exon: Exon, alignment_strand: str, side: Side) -> tuple[int, Orientation]:
    """Select the exon boundary a breakpoint should be compared against.

    Args:
        exon: Candidate exon.
        alignment_strand: Strand of the aligned read segment.
        side: Donor or acceptor side.

    Returns:
        Tuple of (boundary coordinate, orientation).
    """
    if exon.strand == alignment_strand:
        boundary = exon.end3 if side is Side.DONOR else exon.end5
        return boundary, Orientation.SENSE
    boundary = exon.end5 if side is Side.DONOR else exon.end3
    return boundary, Orientation.ANTISENSE


# =============================================================================
# Matcher
# =============================================================================


class BreakpointMatcher:
    """Match chimeric breakpoints against the feature index.

    The matcher holds no state besides the read-only index, so one
    instance can serve any number of records.

    Attributes:
        index: Genome feature index.
    """

    def __init__(self, index: FeatureIndex) -> None:
        self.index = index

    def match(
        self,
        chromosome: str,
        breakpoint: int,
        alignment_strand: str,
        side: Side,
        alignment_start: int,
        cigar: str,
    ) -> list[ExonMatch]:
        """Find the nearest exon boundary per overlapping gene.

        Args:
            chromosome: Chromosome of the breakpoint.
            breakpoint: Breakpoint coordinate (1-based).
            alignment_strand: Strand of the aligned segment.
            side: Donor or acceptor side.
            alignment_start: First aligned base of the segment.
            cigar: CIGAR of the segment.

        Returns:
            One ExonMatch per gene, ordered by ascending delta. Empty when
            nothing overlaps.

        Raises:
            CigarParseError: If the CIGAR is malformed.
        """
        genome_intervals, _ = resolve_cigar(alignment_start, cigar)

        hits: list[ExonMatch] = []
        for aligned in genome_intervals:
            genes = self.index.query(chromosome, aligned.start, aligned.end)
            for gene_key in sorted(genes):
                for record in self.index.iter_exons(chromosome, gene_key):
                    if not record.transcript.contains(breakpoint):
                        continue
                    if not record.exon.interval.overlaps(aligned):
                        continue
                    boundary, orientation = boundary_for(record.exon, alignment_strand, side)
                    hits.append(
                        ExonMatch(
                            gene_key=gene_key,
                            chromosome=chromosome,
                            breakpoint=breakpoint,
                            strand=alignment_strand,
                            exon_boundary=boundary,
                            delta=abs(breakpoint - boundary),
                            orientation=orientation,
                        )
                    )

        return keep_min_per_key(hits, key=lambda m: m.gene_key, sort_key=lambda m: m.delta)
