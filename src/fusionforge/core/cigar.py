"""CIGAR coordinate resolution.

Converts an alignment start and CIGAR string into the genomic and query
intervals covered by aligned (match/mismatch) blocks.

Operation handling:
    - ``M``, ``=``, ``X``: emit an aligned block, advance genome and query
    - ``D``, ``N``, ``p``: advance genome only (``p`` is the mate gap used
      in chimeric pair alignments and may be negative)
    - ``I``, ``S``, ``H``: advance query only

Example:
    >>> from fusionforge.core.cigar import resolve_cigar
    >>> genome, query = resolve_cigar(1000, "10M100N15M")
    >>> genome
    [Interval(start=1000, end=1009), Interval(start=1110, end=1124)]
    >>> query
    [Interval(start=1, end=10), Interval(start=11, end=25)]
"""

from __future__ import annotations

import re
from typing import NamedTuple

from fusionforge.utils.intervals import Interval

# =============================================================================
# Constants
# =============================================================================

MATCH_OPS = frozenset("M=X")
GENOME_ONLY_OPS = frozenset("DNp")
QUERY_ONLY_OPS = frozenset("ISH")

# Lengths may be negative for the mate gap operation
_CIGAR_TOKEN = re.compile(r"(-?\d+)(\D)")


class CigarParseError(ValueError):
    """Raised when a CIGAR string cannot be parsed."""

    pass


class CigarOp(NamedTuple):
    """A single CIGAR operation."""

    length: int
    op: str


# =============================================================================
# Parsing
# =============================================================================


def parse_cigar(cigar: str) -> list[CigarOp]:
    """Split a CIGAR string into operations.

    Args:
        cigar: CIGAR text, e.g. ``"50M1000N26M"``.

    Returns:
        List of CigarOp.

    Raises:
        CigarParseError: If the string contains an unknown operation or
            text that is not a length/operation pair.
    """
    ops = []
    consumed = 0
    for match in _CIGAR_TOKEN.finditer(cigar):
        if match.start() != consumed:
            raise CigarParseError(f"Malformed CIGAR {cigar!r} at offset {consumed}")
        length, op = int(match.group(1)), match.group(2)
        if op not in MATCH_OPS and op not in GENOME_ONLY_OPS and op not in QUERY_ONLY_OPS:
            raise CigarParseError(f"Unknown CIGAR operation {op!r} in {cigar!r}")
        if length < 0 and op != "p":
            raise CigarParseError(f"Negative length for operation {op!r} in {cigar!r}")
        ops.append(CigarOp(length, op))
        consumed = match.end()

    if consumed != len(cigar) or not ops:
        raise CigarParseError(f"Malformed CIGAR {cigar!r}")
    return ops


def resolve_cigar(start: int, cigar: str) -> tuple[list[Interval], list[Interval]]:
    """Resolve aligned blocks of an alignment.

    Args:
        start: Genomic coordinate of the first aligned base (1-based).
        cigar: CIGAR string.

    Returns:
        Tuple of (genome_intervals, query_intervals), pairwise aligned, both
        1-based inclusive.

    Raises:
        CigarParseError: On any unrecognised operation.
    """
    genome_intervals: list[Interval] = []
    query_intervals: list[Interval] = []

    # 0-based cursors
    genome_pos = start - 1
    query_pos = 0

    for length, op in parse_cigar(cigar):
        if op in MATCH_OPS:
            genome_intervals.append(Interval(genome_pos + 1, genome_pos + length))
            query_intervals.append(Interval(query_pos + 1, query_pos + length))
            genome_pos += length
            query_pos += length
        elif op in GENOME_ONLY_OPS:
            genome_pos += length
        else:
            query_pos += length

    return genome_intervals, query_intervals
