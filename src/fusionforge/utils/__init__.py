"""Utility functions for FusionForge.

- Interval value type (1-based, inclusive)
- Logging configuration
- Region string parsing

Example:
    >>> from fusionforge.utils import Interval
    >>> Interval(10, 20).length
    11
"""

from fusionforge.utils.intervals import Interval, span
from fusionforge.utils.logging import ProgressLogger, Timer, setup_logging
from fusionforge.utils.regions import GenomicRegion, parse_region

__all__ = [
    "Interval",
    "span",
    "setup_logging",
    "ProgressLogger",
    "Timer",
    "GenomicRegion",
    "parse_region",
]
