"""Core fusion prediction logic for FusionForge.

- Genome feature index over gene extents and exons
- CIGAR coordinate resolution
- Breakpoint-to-exon matching
- Fusion evidence aggregation
- Candidate scoring and ranking

Example:
    >>> from fusionforge.core import build_feature_index, BreakpointMatcher, FusionAggregator
    >>> index = build_feature_index(genes)
    >>> aggregator = FusionAggregator(BreakpointMatcher(index))
"""

from fusionforge.core.aggregate import (
    BreakpointKey,
    FusionAggregator,
    FusionIdentity,
    FusionKey,
    RecordStatus,
)
from fusionforge.core.annotation import Exon, GeneAnnotation, GeneKey, Transcript
from fusionforge.core.cigar import CigarParseError, resolve_cigar
from fusionforge.core.index import ChromosomeIndex, ExonTable, FeatureIndex, build_feature_index
from fusionforge.core.matcher import BreakpointMatcher, ExonMatch, Orientation, Side
from fusionforge.core.scoring import CandidateScorer, FusionCandidate, SpliceType

__all__: list[str] = [
    # Annotation model
    "Exon",
    "GeneAnnotation",
    "GeneKey",
    "Transcript",
    # Index
    "ChromosomeIndex",
    "ExonTable",
    "FeatureIndex",
    "build_feature_index",
    # CIGAR
    "CigarParseError",
    "resolve_cigar",
    # Matching
    "BreakpointMatcher",
    "ExonMatch",
    "Orientation",
    "Side",
    # Aggregation
    "BreakpointKey",
    "FusionAggregator",
    "FusionIdentity",
    "FusionKey",
    "RecordStatus",
    # Scoring
    "CandidateScorer",
    "FusionCandidate",
    "SpliceType",
]
