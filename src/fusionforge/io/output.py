"""Output writers for fusion predictions.

This module provides functions for exporting prediction results:

- Ranked fusion candidate table
- Per-record diagnostic table of matched genes
- Read assignment tables (junction reads and spanning fragments)

Every table is written to a temporary sibling file and moved into place
once complete, so a file at the final path is always a finished one.

Example:
    >>> from fusionforge.io.output import write_candidates_tsv
    >>> candidates = scorer.rank(aggregator)
    >>> write_candidates_tsv(candidates, "sample.fusion_candidates.tsv")
"""

from __future__ import annotations

import csv
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from fusionforge.core.aggregate import RecordOutcome
    from fusionforge.core.matcher import ExonMatch
    from fusionforge.core.scoring import FusionCandidate

logger = logging.getLogger(__name__)

# Placeholder for empty list columns
EMPTY = "."

CANDIDATE_HEADERS = [
    "#fusion_name",
    "JunctionReads",
    "SpanningFrags",
    "Splice_type",
    "LeftGene",
    "LeftBreakpoint",
    "RightGene",
    "RightBreakpoint",
    "JunctionReadNames",
    "SpanningFragNames",
]

DIAGNOSTIC_HEADERS = [
    "#chr_donorA",
    "brkpt_donorA",
    "strand_donorA",
    "chr_acceptorB",
    "brkpt_acceptorB",
    "strand_acceptorB",
    "junction_type",
    "repeat_left_lenA",
    "repeat_right_lenB",
    "read_name",
    "start_alnA",
    "cigar_alnA",
    "start_alnB",
    "cigar_alnB",
    "donor_genes",
    "acceptor_genes",
    "status",
]

READ_HEADERS = ["#fusion_name", "read_name"]


# =============================================================================
# Helpers
# =============================================================================


@contextmanager
def atomic_write(path: Path | str) -> Iterator[IO[str]]:
    """Open a temporary file that replaces ``path`` only on success.

    Yields:
        Writable text handle.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", newline="") as f:
            yield f
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def join_names(names: tuple[str, ...] | list[str]) -> str:
    """Comma-join read names, or the placeholder when there are none."""
    return ",".join(names) if names else EMPTY


def format_matches(matches: tuple["ExonMatch", ...]) -> str:
    """Render matched genes as ``name^id`` with their delta."""
    if not matches:
        return EMPTY
    return ",".join(f"{m.gene_key}({m.orientation.value},{m.delta})" for m in matches)


# =============================================================================
# Candidate Table
# =============================================================================


def write_candidates_tsv(
    candidates: list["FusionCandidate"],
    output_path: Path | str,
) -> None:
    """Write the ranked candidate table.

    Args:
        candidates: Ranked FusionCandidate objects.
        output_path: Output file path.
    """
    with atomic_write(output_path) as f:
        writer = csv.writer(f, delimiter="\t", lineterminator="\n")
        writer.writerow(CANDIDATE_HEADERS)

        for candidate in candidates:
            writer.writerow(
                [
                    candidate.display_name,
                    candidate.junction_count,
                    candidate.spanning_count,
                    candidate.splice_type.value,
                    str(candidate.left_gene),
                    candidate.left_position,
                    str(candidate.right_gene),
                    candidate.right_position,
                    join_names(candidate.junction_reads),
                    join_names(candidate.spanning_frags),
                ]
            )

    logger.info(f"Wrote {len(candidates):,} fusion candidates to {output_path}")


def write_read_assignments_tsv(
    candidates: list["FusionCandidate"],
    junction_path: Path | str,
    spanning_path: Path | str,
) -> None:
    """Write (fusion, read) pairs for junction reads and spanning fragments.

    Args:
        candidates: Ranked FusionCandidate objects.
        junction_path: Output path for split-read assignments.
        spanning_path: Output path for spanning-fragment assignments.
    """
    with atomic_write(junction_path) as jf, atomic_write(spanning_path) as sf:
        junction_writer = csv.writer(jf, delimiter="\t", lineterminator="\n")
        spanning_writer = csv.writer(sf, delimiter="\t", lineterminator="\n")
        junction_writer.writerow(READ_HEADERS)
        spanning_writer.writerow(READ_HEADERS)

        for candidate in candidates:
            for read_name in candidate.junction_reads:
                junction_writer.writerow([candidate.fusion_name, read_name])
            for read_name in candidate.spanning_frags:
                spanning_writer.writerow([candidate.fusion_name, read_name])


# =============================================================================
# Diagnostic Table
# =============================================================================


class DiagnosticWriter:
    """Stream one diagnostic row per input record.

    Example:
        >>> with DiagnosticWriter("sample.junction_genes.tsv") as writer:
        ...     for record in records:
        ...         writer.write(aggregator.add_record(record))
    """

    def __init__(self, output_path: Path | str) -> None:
        self.path = Path(output_path)
        self._context = atomic_write(self.path)
        self._file: IO[str] | None = None
        self._writer = None
        self.count = 0

    def __enter__(self) -> DiagnosticWriter:
        self._file = self._context.__enter__()
        self._writer = csv.writer(self._file, delimiter="\t", lineterminator="\n")
        self._writer.writerow(DIAGNOSTIC_HEADERS)
        return self

    def __exit__(self, *exc_info) -> None:
        self._context.__exit__(*exc_info)
        self._file = None
        self._writer = None
        if exc_info[0] is None:
            logger.info(f"Wrote {self.count:,} diagnostic rows to {self.path}")

    def write(self, outcome: "RecordOutcome") -> None:
        if self._writer is None:
            raise RuntimeError("DiagnosticWriter is not open")
        self._writer.writerow(
            outcome.record.to_fields()
            + [
                format_matches(outcome.donor_matches),
                format_matches(outcome.acceptor_matches),
                outcome.status.value,
            ]
        )
        self.count += 1
