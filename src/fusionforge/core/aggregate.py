"""Fusion evidence aggregation.

Streams chimeric records through the breakpoint matcher and accumulates
read support per fusion identity (ordered left/right gene pair).

Split reads are recorded under their exact breakpoint (coordinates,
strands and exon-boundary deltas on both sides); encompassing read pairs
are recorded as spanning fragments of the identity.

Aggregation is a set union per identity, so aggregators built over
disjoint shards of the input can be combined with ``merge`` in any order.

Example:
    >>> from fusionforge.core.aggregate import FusionAggregator
    >>> aggregator = FusionAggregator(matcher)
    >>> for record in iter_chimeric_records("Chimeric.out.junction"):
    ...     aggregator.add_record(record)
    >>> len(aggregator)
    12
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterator

import attrs

from fusionforge.core.annotation import GeneKey, flip_strand
from fusionforge.core.cigar import CigarParseError
from fusionforge.core.matcher import ExonMatch, Side

if TYPE_CHECKING:
    from fusionforge.core.matcher import BreakpointMatcher
    from fusionforge.io.chimeric import ChimericRecord

logger = logging.getLogger(__name__)


# =============================================================================
# Keys
# =============================================================================


@attrs.frozen(order=True)
class FusionKey:
    """Ordered gene pair identifying a fusion (5' partner first)."""

    left: GeneKey
    right: GeneKey

    @property
    def complex_name(self) -> str:
        """Name built from full gene keys (unique)."""
        return f"{self.left}--{self.right}"

    @property
    def simple_name(self) -> str:
        """Name built from display names only.

        Distinct gene ids sharing a display name collapse onto the same
        simple name.
        """
        return f"{self.left.gene_name}--{self.right.gene_name}"


@attrs.frozen(order=True)
class BreakpointKey:
    """Exact breakpoint of a split-read fusion junction."""

    left_chrom: str
    left_coord: int
    left_strand: str
    left_delta: int
    right_chrom: str
    right_coord: int
    right_strand: str
    right_delta: int

    @property
    def is_reference_splice(self) -> bool:
        """True when both sides sit exactly on annotated exon boundaries."""
        return self.left_delta == 0 and self.right_delta == 0

    @property
    def left_position(self) -> str:
        return f"{self.left_chrom}:{self.left_coord}:{self.left_strand}"

    @property
    def right_position(self) -> str:
        return f"{self.right_chrom}:{self.right_coord}:{self.right_strand}"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define
class FusionIdentity:
    """Accumulated evidence for one fusion.

    Attributes:
        key: Ordered gene pair.
        left_chrom: Chromosome of the first observed left breakpoint.
        left_coord: First observed left breakpoint.
        left_strand: Strand of the first observed left breakpoint.
        right_chrom: Chromosome of the first observed right breakpoint.
        right_coord: First observed right breakpoint.
        right_strand: Strand of the first observed right breakpoint.
        spanning_reads: Fragments supporting the fusion without a split read.
        breakpoints: Split-read names per exact breakpoint.
    """

    key: FusionKey
    left_chrom: str
    left_coord: int
    left_strand: str
    right_chrom: str
    right_coord: int
    right_strand: str
    spanning_reads: set[str] = attrs.Factory(set)
    breakpoints: dict[BreakpointKey, set[str]] = attrs.Factory(dict)

    @property
    def left_position(self) -> str:
        return f"{self.left_chrom}:{self.left_coord}:{self.left_strand}"

    @property
    def right_position(self) -> str:
        return f"{self.right_chrom}:{self.right_coord}:{self.right_strand}"

    def add_junction_read(self, breakpoint: BreakpointKey, read_name: str) -> None:
        self.breakpoints.setdefault(breakpoint, set()).add(read_name)

    def add_spanning_read(self, read_name: str) -> None:
        self.spanning_reads.add(read_name)

    def merge(self, other: FusionIdentity) -> None:
        """Union another identity's evidence into this one."""
        if other.key != self.key:
            raise ValueError(f"Cannot merge {other.key.complex_name} into {self.key.complex_name}")
        self.spanning_reads |= other.spanning_reads
        for breakpoint, reads in other.breakpoints.items():
            self.breakpoints.setdefault(breakpoint, set()).update(reads)


class RecordStatus(Enum):
    """Outcome of aggregating a single record."""

    OK = "ok"
    NO_MATCH = "no_match"
    SELF_FUSION = "self_fusion"
    ORIENTATION_MISMATCH = "orientation_mismatch"


@attrs.frozen
class RecordOutcome:
    """What one record contributed, for diagnostic output.

    Attributes:
        record: The input record.
        donor_matches: Matches on the donor side.
        acceptor_matches: Matches on the acceptor side.
        status: Aggregation outcome.
        fusions: Fusion identities updated by this record.
    """

    record: ChimericRecord
    donor_matches: tuple[ExonMatch, ...]
    acceptor_matches: tuple[ExonMatch, ...]
    status: RecordStatus
    fusions: tuple[FusionKey, ...] = ()


@attrs.define
class AggregatorStats:
    """Counters over the processed record stream."""

    records: int = 0
    spanning_records: int = 0
    split_records: int = 0
    no_match: int = 0
    self_fusions: int = 0
    orientation_mismatches: int = 0

    def merge(self, other: AggregatorStats) -> None:
        for field in attrs.fields(AggregatorStats):
            setattr(self, field.name, getattr(self, field.name) + getattr(other, field.name))


# =============================================================================
# Aggregator
# =============================================================================


def orient_pair(donor: ExonMatch, acceptor: ExonMatch) -> tuple[ExonMatch, ExonMatch]:
    """Order a donor/acceptor match pair 5' partner first.

    Sense pairs keep donor on the left. Antisense pairs are swapped and
    their strands flipped so that the left side is the 5' partner in the
    genes' own orientation.
    """
    if donor.is_sense:
        return donor, acceptor
    return (
        attrs.evolve(acceptor, strand=flip_strand(acceptor.strand)),
        attrs.evolve(donor, strand=flip_strand(donor.strand)),
    )


class FusionAggregator:
    """Accumulate chimeric read support per fusion identity.

    Attributes:
        matcher: Breakpoint matcher backed by the feature index.
        identities: Fusion identities in first-observation order.
        stats: Stream counters.
    """

    def __init__(self, matcher: BreakpointMatcher | None = None) -> None:
        self.matcher = matcher
        self.identities: dict[FusionKey, FusionIdentity] = {}
        self.stats = AggregatorStats()

    def __len__(self) -> int:
        return len(self.identities)

    def __iter__(self) -> Iterator[FusionIdentity]:
        return iter(self.identities.values())

    def __contains__(self, key: FusionKey) -> bool:
        return key in self.identities

    def get(self, key: FusionKey) -> FusionIdentity | None:
        return self.identities.get(key)

    def _identity_for(self, key: FusionKey, left: ExonMatch, right: ExonMatch) -> FusionIdentity:
        identity = self.identities.get(key)
        if identity is None:
            identity = FusionIdentity(
                key=key,
                left_chrom=left.chromosome,
                left_coord=left.breakpoint,
                left_strand=left.strand,
                right_chrom=right.chromosome,
                right_coord=right.breakpoint,
                right_strand=right.strand,
            )
            self.identities[key] = identity
        return identity

    def _match_sides(
        self, record: ChimericRecord
    ) -> tuple[tuple[ExonMatch, ...], tuple[ExonMatch, ...]]:
        donor_matches = tuple(
            self.matcher.match(
                record.donor_chrom,
                record.donor_breakpoint,
                record.donor_strand,
                Side.DONOR,
                record.segment1_start,
                record.segment1_cigar,
            )
        )
        acceptor_matches = tuple(
            self.matcher.match(
                record.acceptor_chrom,
                record.acceptor_breakpoint,
                record.acceptor_strand,
                Side.ACCEPTOR,
                record.segment2_start,
                record.segment2_cigar,
            )
        )
        return donor_matches, acceptor_matches

    def add_record(self, record: ChimericRecord) -> RecordOutcome:
        """Match and aggregate one chimeric record.

        Args:
            record: Parsed chimeric alignment.

        Returns:
            RecordOutcome describing the matches and the identities touched.

        Raises:
            CigarParseError: If either segment CIGAR is malformed. The
                message names the record line and read.
        """
        if self.matcher is None:
            raise RuntimeError("FusionAggregator has no matcher; it can only be merged into")

        self.stats.records += 1
        if record.is_spanning:
            self.stats.spanning_records += 1
        else:
            self.stats.split_records += 1

        try:
            donor_matches, acceptor_matches = self._match_sides(record)
        except CigarParseError as e:
            raise CigarParseError(
                f"Line {record.line_number} (read {record.read_name}): {e}"
            ) from e

        if not donor_matches or not acceptor_matches:
            self.stats.no_match += 1
            return RecordOutcome(record, donor_matches, acceptor_matches, RecordStatus.NO_MATCH)

        donor_genes = {m.gene_key for m in donor_matches}
        if any(m.gene_key in donor_genes for m in acceptor_matches):
            self.stats.self_fusions += 1
            logger.debug(f"Discarding self-fusion record {record.read_name} (line {record.line_number})")
            return RecordOutcome(record, donor_matches, acceptor_matches, RecordStatus.SELF_FUSION)

        fusions: list[FusionKey] = []
        for donor in donor_matches:
            for acceptor in acceptor_matches:
                if donor.orientation is not acceptor.orientation:
                    continue
                left, right = orient_pair(donor, acceptor)
                key = FusionKey(left.gene_key, right.gene_key)
                identity = self._identity_for(key, left, right)

                if record.is_spanning:
                    identity.add_spanning_read(record.read_name)
                else:
                    breakpoint = BreakpointKey(
                        left_chrom=left.chromosome,
                        left_coord=left.breakpoint,
                        left_strand=left.strand,
                        left_delta=left.delta,
                        right_chrom=right.chromosome,
                        right_coord=right.breakpoint,
                        right_strand=right.strand,
                        right_delta=right.delta,
                    )
                    identity.add_junction_read(breakpoint, record.read_name)
                fusions.append(key)

        if not fusions:
            self.stats.orientation_mismatches += 1
            return RecordOutcome(
                record, donor_matches, acceptor_matches, RecordStatus.ORIENTATION_MISMATCH
            )

        return RecordOutcome(
            record, donor_matches, acceptor_matches, RecordStatus.OK, tuple(fusions)
        )

    def merge(self, other: FusionAggregator) -> None:
        """Union another aggregator's tables and counters into this one.

        Identities new to this aggregator are appended in the other's
        first-observation order.
        """
        for key, identity in other.identities.items():
            mine = self.identities.get(key)
            if mine is None:
                mine = FusionIdentity(
                    key=key,
                    left_chrom=identity.left_chrom,
                    left_coord=identity.left_coord,
                    left_strand=identity.left_strand,
                    right_chrom=identity.right_chrom,
                    right_coord=identity.right_coord,
                    right_strand=identity.right_strand,
                )
                self.identities[key] = mine
            mine.merge(identity)
        self.stats.merge(other.stats)
