"""End-to-end fusion prediction.

Runs the stages in strict order: annotation -> feature index (complete
before any record is read) -> streaming aggregation -> scoring -> output
tables.

Example:
    >>> from fusionforge.pipeline import run_prediction
    >>> result = run_prediction("genes.gtf", "Chimeric.out.junction", "out/sample")
    >>> result.candidates_path
    PosixPath('out/sample.fusion_candidates.tsv')
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import attrs

from fusionforge.config import Config
from fusionforge.core.aggregate import AggregatorStats, FusionAggregator
from fusionforge.core.annotation import GeneAnnotation
from fusionforge.core.index import FeatureIndex, build_feature_index
from fusionforge.core.matcher import BreakpointMatcher
from fusionforge.core.scoring import CandidateScorer, FusionCandidate
from fusionforge.io.chimeric import ChimericRecord, iter_chimeric_records
from fusionforge.io.gff import read_annotation
from fusionforge.io.output import (
    DiagnosticWriter,
    write_candidates_tsv,
    write_read_assignments_tsv,
)
from fusionforge.utils.logging import ProgressLogger, Timer

logger = logging.getLogger(__name__)

CANDIDATES_SUFFIX = ".fusion_candidates.tsv"
DIAGNOSTIC_SUFFIX = ".junction_genes.tsv"
JUNCTION_READS_SUFFIX = ".junction_reads.tsv"
SPANNING_READS_SUFFIX = ".spanning_reads.tsv"


@attrs.frozen
class PredictionResult:
    """Outputs of a prediction run.

    Attributes:
        candidates: Ranked candidates.
        stats: Record stream counters.
        n_identities: Number of fusion identities aggregated.
        candidates_path: Candidate table path.
        diagnostic_path: Per-record diagnostic table path.
        junction_reads_path: Junction read assignment path.
        spanning_reads_path: Spanning fragment assignment path.
    """

    candidates: list[FusionCandidate]
    stats: AggregatorStats
    n_identities: int
    candidates_path: Path
    diagnostic_path: Path
    junction_reads_path: Path
    spanning_reads_path: Path


def output_paths(prefix: Path | str) -> dict[str, Path]:
    """Output file paths for a prefix."""
    prefix = str(prefix)
    return {
        "candidates": Path(prefix + CANDIDATES_SUFFIX),
        "diagnostic": Path(prefix + DIAGNOSTIC_SUFFIX),
        "junction_reads": Path(prefix + JUNCTION_READS_SUFFIX),
        "spanning_reads": Path(prefix + SPANNING_READS_SUFFIX),
    }


def aggregate_records(
    records: Iterable[ChimericRecord],
    index: FeatureIndex,
    diagnostics: DiagnosticWriter | None = None,
    progress_interval: int = 1_000_000,
) -> FusionAggregator:
    """Stream records through the matcher into a new aggregator.

    Args:
        records: Chimeric records.
        index: Fully built feature index.
        diagnostics: Optional open diagnostic writer.
        progress_interval: Records between progress messages.

    Returns:
        Populated FusionAggregator.
    """
    aggregator = FusionAggregator(BreakpointMatcher(index))
    progress = ProgressLogger(logger, interval=progress_interval, description="Chimeric records")

    for record in records:
        outcome = aggregator.add_record(record)
        if diagnostics is not None:
            diagnostics.write(outcome)
        progress.update()

    progress.finish()
    stats = aggregator.stats
    logger.info(
        f"Aggregated {stats.records:,} records into {len(aggregator):,} fusion identities "
        f"({stats.self_fusions:,} self-fusions, {stats.no_match:,} unmatched, "
        f"{stats.orientation_mismatches:,} orientation mismatches discarded)"
    )
    return aggregator


def run_prediction(
    annotation: Path | str | list[GeneAnnotation],
    junctions: Path | str,
    output_prefix: Path | str,
    config: Config | None = None,
) -> PredictionResult:
    """Predict fusions from a chimeric junction file.

    Args:
        annotation: Annotation file path, or already parsed genes.
        junctions: Chimeric junction file (optionally gzipped).
        output_prefix: Prefix for all output tables.
        config: Configuration; defaults if None.

    Returns:
        PredictionResult.

    Raises:
        ChimericFormatError: On a malformed junction line.
        CigarParseError: On a malformed CIGAR.
        AnnotationFormatError: On a malformed annotation line.
    """
    config = config or Config()
    paths = output_paths(output_prefix)
    paths["candidates"].parent.mkdir(parents=True, exist_ok=True)

    with Timer("Feature index build", logger):
        genes = annotation if isinstance(annotation, list) else read_annotation(annotation)
        index = build_feature_index(genes)

    with Timer("Chimeric read aggregation", logger):
        with DiagnosticWriter(paths["diagnostic"]) as diagnostics:
            aggregator = aggregate_records(
                iter_chimeric_records(junctions),
                index,
                diagnostics=diagnostics,
                progress_interval=config.input.progress_interval,
            )

    candidates = CandidateScorer(config.scoring).rank(aggregator)

    write_candidates_tsv(candidates, paths["candidates"])
    write_read_assignments_tsv(candidates, paths["junction_reads"], paths["spanning_reads"])

    return PredictionResult(
        candidates=candidates,
        stats=aggregator.stats,
        n_identities=len(aggregator),
        candidates_path=paths["candidates"],
        diagnostic_path=paths["diagnostic"],
        junction_reads_path=paths["junction_reads"],
        spanning_reads_path=paths["spanning_reads"],
    )
