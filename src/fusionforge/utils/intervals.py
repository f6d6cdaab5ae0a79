"""Genomic interval value type.

All coordinates handled by FusionForge are 1-based and inclusive on both
ends, matching the junction file and the GFF3/GTF annotation conventions.

Example:
    >>> from fusionforge.utils.intervals import Interval
    >>> a = Interval(100, 200)
    >>> a.length
    101
    >>> a.overlaps(Interval(200, 300))
    True
"""

from typing import NamedTuple

# =============================================================================
# Data Structures
# =============================================================================


class Interval(NamedTuple):
    """A closed genomic interval.

    Attributes:
        start: Start position (1-based, inclusive).
        end: End position (1-based, inclusive).
    """

    start: int
    end: int

    @property
    def length(self) -> int:
        """Get interval length."""
        return self.end - self.start + 1

    def overlaps(self, other: "Interval") -> bool:
        """Check if this interval shares at least one base with another."""
        return self.start <= other.end and other.start <= self.end

    def contains(self, position: int) -> bool:
        """Check if this interval contains a position."""
        return self.start <= position <= self.end


def span(intervals: list[Interval]) -> Interval:
    """Smallest interval covering every interval in a list.

    Args:
        intervals: Non-empty list of intervals.

    Returns:
        Covering interval.

    Raises:
        ValueError: If the list is empty.
    """
    if not intervals:
        raise ValueError("Cannot compute the span of an empty interval list")
    return Interval(
        min(iv.start for iv in intervals),
        max(iv.end for iv in intervals),
    )
