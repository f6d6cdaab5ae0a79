"""Chimeric junction file reader.

Reads the 14-column tab-separated chimeric alignment table written by the
upstream spliced aligner (``Chimeric.out.junction``). Gzip-compressed
files (``.gz``) are decompressed transparently.

Columns:
    1. donor chromosome
    2. donor first intronic base (1-based)
    3. donor strand
    4. acceptor chromosome
    5. acceptor first intronic base (1-based)
    6. acceptor strand
    7. junction type (-1 encompassing pair, 1 or 2 split read)
    8. left repeat length
    9. right repeat length
    10. read name
    11. segment 1 first aligned base
    12. segment 1 CIGAR
    13. segment 2 first aligned base
    14. segment 2 CIGAR

Example:
    >>> from fusionforge.io.chimeric import iter_chimeric_records
    >>> for record in iter_chimeric_records("Chimeric.out.junction.gz"):
    ...     print(record.read_name, record.is_spanning)
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import IO, Iterator

import attrs

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

N_COLUMNS = 14

JUNCTION_TYPE_ENCOMPASSING = -1

# Newer aligner releases write a header row starting with this column name
HEADER_FIRST_COLUMN = "chr_donorA"


class ChimericFormatError(ValueError):
    """Raised when a chimeric junction line cannot be parsed."""

    pass


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen
class ChimericRecord:
    """One chimeric alignment.

    Attributes:
        donor_chrom: Donor chromosome.
        donor_coord: Donor first intronic base (1-based).
        donor_strand: Donor alignment strand.
        acceptor_chrom: Acceptor chromosome.
        acceptor_coord: Acceptor first intronic base (1-based).
        acceptor_strand: Acceptor alignment strand.
        junction_type: -1 for encompassing pairs, 1 or 2 for split reads.
        repeat_left: Repeat length left of the junction.
        repeat_right: Repeat length right of the junction.
        read_name: Read (fragment) name.
        segment1_start: First aligned base of segment 1.
        segment1_cigar: CIGAR of segment 1.
        segment2_start: First aligned base of segment 2.
        segment2_cigar: CIGAR of segment 2.
        line_number: 1-based line number in the source file.
    """

    donor_chrom: str
    donor_coord: int
    donor_strand: str
    acceptor_chrom: str
    acceptor_coord: int
    acceptor_strand: str
    junction_type: int
    repeat_left: int
    repeat_right: int
    read_name: str
    segment1_start: int
    segment1_cigar: str
    segment2_start: int
    segment2_cigar: str
    line_number: int = 0

    @property
    def is_spanning(self) -> bool:
        """True for encompassing read pairs with no split read."""
        return self.junction_type == JUNCTION_TYPE_ENCOMPASSING

    @property
    def donor_breakpoint(self) -> int:
        """Last exonic base before the junction on the donor side."""
        return self.donor_coord - 1 if self.donor_strand == "+" else self.donor_coord + 1

    @property
    def acceptor_breakpoint(self) -> int:
        """First exonic base after the junction on the acceptor side."""
        return self.acceptor_coord + 1 if self.acceptor_strand == "+" else self.acceptor_coord - 1

    def to_fields(self) -> list[str]:
        """Render back to the 14 input columns."""
        return [
            self.donor_chrom,
            str(self.donor_coord),
            self.donor_strand,
            self.acceptor_chrom,
            str(self.acceptor_coord),
            self.acceptor_strand,
            str(self.junction_type),
            str(self.repeat_left),
            str(self.repeat_right),
            self.read_name,
            str(self.segment1_start),
            self.segment1_cigar,
            str(self.segment2_start),
            self.segment2_cigar,
        ]


# =============================================================================
# Parsing
# =============================================================================


def parse_chimeric_line(line: str, line_number: int = 0) -> ChimericRecord:
    """Parse one data line.

    Args:
        line: Raw tab-separated line.
        line_number: Line number for error messages.

    Returns:
        Parsed ChimericRecord.

    Raises:
        ChimericFormatError: If columns are missing or numeric fields are invalid.
    """
    parts = line.rstrip("\r\n").split("\t")
    if len(parts) < N_COLUMNS:
        raise ChimericFormatError(
            f"Line {line_number}: expected {N_COLUMNS} columns, found {len(parts)}"
        )

    try:
        record = ChimericRecord(
            donor_chrom=parts[0],
            donor_coord=int(parts[1]),
            donor_strand=parts[2],
            acceptor_chrom=parts[3],
            acceptor_coord=int(parts[4]),
            acceptor_strand=parts[5],
            junction_type=int(parts[6]),
            repeat_left=int(parts[7]),
            repeat_right=int(parts[8]),
            read_name=parts[9],
            segment1_start=int(parts[10]),
            segment1_cigar=parts[11],
            segment2_start=int(parts[12]),
            segment2_cigar=parts[13],
            line_number=line_number,
        )
    except ValueError as e:
        raise ChimericFormatError(f"Line {line_number}: {e}") from e

    for strand in (record.donor_strand, record.acceptor_strand):
        if strand not in ("+", "-"):
            raise ChimericFormatError(f"Line {line_number}: invalid strand {strand!r}")

    return record


def open_text(path: Path | str) -> IO[str]:
    """Open a text file, decompressing ``.gz`` transparently."""
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, "rt")
    return open(path)


def iter_chimeric_records(path: Path | str) -> Iterator[ChimericRecord]:
    """Stream records from a chimeric junction file.

    Comment lines, blank lines and the optional header row are skipped.

    Args:
        path: Path to the junction file (optionally gzipped).

    Yields:
        ChimericRecord objects in file order.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ChimericFormatError: On the first malformed line.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Chimeric junction file not found: {path}")

    n_records = 0
    with open_text(path) as f:
        for line_number, line in enumerate(f, 1):
            if not line.strip() or line.startswith("#"):
                continue
            if line.startswith(HEADER_FIRST_COLUMN):
                continue
            yield parse_chimeric_line(line, line_number)
            n_records += 1

    logger.debug(f"Read {n_records:,} chimeric records from {path.name}")
