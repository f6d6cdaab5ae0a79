"""Genomic region parsing.

Region strings given on the command line are 1-based and inclusive, the
same convention used throughout FusionForge, so no conversion happens.

Example:
    >>> from fusionforge.utils.regions import parse_region
    >>> region = parse_region("chr1:1000-2000")
    >>> region.seqid, region.start, region.end
    ('chr1', 1000, 2000)
    >>> str(region)
    'chr1:1000-2000'
"""

from __future__ import annotations

import re
from typing import NamedTuple

from fusionforge.utils.intervals import Interval


class GenomicRegion(NamedTuple):
    """Parsed genomic region.

    Attributes:
        seqid: Chromosome name.
        start: Start position (1-based, inclusive).
        end: End position (1-based, inclusive).
    """

    seqid: str
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.seqid}:{self.start}-{self.end}"

    @property
    def length(self) -> int:
        """Get region length in base pairs."""
        return self.end - self.start + 1

    def to_interval(self) -> Interval:
        return Interval(self.start, self.end)


# Handles: chr1:1000-2000, chr1:1000..2000, chr1:1,000-2,000
_REGION_PATTERN = re.compile(r"^(.+):([\d,]+)(?:-|\.\.)([\d,]+)$")


def parse_region(region_str: str) -> GenomicRegion:
    """Parse region string into GenomicRegion.

    Supported formats:
        chr1:1000-2000      (1-based, inclusive)
        chr1:1000..2000     (GFF style)
        chr1:1,000-2,000    (thousands separators)

    Args:
        region_str: Region string in format seqid:start-end.

    Returns:
        GenomicRegion with 1-based inclusive coordinates.

    Raises:
        ValueError: If format is invalid or coordinates are invalid.
    """
    match = _REGION_PATTERN.match(region_str.strip())

    if not match:
        raise ValueError(
            f"Invalid region format: '{region_str}'. "
            "Expected format: seqid:start-end (e.g., chr1:1000-2000)"
        )

    seqid = match.group(1)
    start = int(match.group(2).replace(",", ""))
    end = int(match.group(3).replace(",", ""))

    if start < 1:
        raise ValueError(f"Start position must be >= 1, got {start}")
    if end < start:
        raise ValueError(f"End must be >= start: {start}-{end}")

    return GenomicRegion(seqid, start, end)
