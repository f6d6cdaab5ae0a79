"""Tests for prediction output writers."""

import csv

import pytest

from conftest import junction_line, self_fusion_line
from fusionforge.core.aggregate import BreakpointKey, FusionAggregator, FusionKey
from fusionforge.core.annotation import GeneKey
from fusionforge.core.matcher import BreakpointMatcher
from fusionforge.core.scoring import FusionCandidate, SpliceType
from fusionforge.io.chimeric import parse_chimeric_line
from fusionforge.io.output import (
    CANDIDATE_HEADERS,
    DIAGNOSTIC_HEADERS,
    DiagnosticWriter,
    atomic_write,
    join_names,
    write_candidates_tsv,
    write_read_assignments_tsv,
)

A_B = FusionKey(GeneKey("GENEA", "ENSGA"), GeneKey("GENEB", "ENSGB"))


def read_tsv(path):
    with open(path) as f:
        return list(csv.reader(f, delimiter="\t"))


@pytest.fixture
def candidates():
    breakpoint = BreakpointKey("chr1", 400, "+", 0, "chr2", 1200, "+", 0)
    return [
        FusionCandidate(
            fusion=A_B,
            breakpoint=breakpoint,
            splice_type=SpliceType.ONLY_REF_SPLICE,
            junction_reads=("r1", "r2"),
            spanning_frags=(),
            left_position="chr1:400:+",
            right_position="chr2:1200:+",
            left_delta=0,
            right_delta=0,
            score=8,
        ),
        FusionCandidate(
            fusion=A_B,
            breakpoint=None,
            splice_type=SpliceType.NO_JUNCTION_READS_IDENTIFIED,
            junction_reads=(),
            spanning_frags=("f1", "f2", "f3", "f4", "f5"),
            left_position="chr1:400:+",
            right_position="chr2:1200:+",
            left_delta=None,
            right_delta=None,
            score=5,
        ),
    ]


# =============================================================================
# Test helpers
# =============================================================================


class TestAtomicWrite:
    """Tests for write-then-rename output."""

    def test_success(self, tmp_path):
        path = tmp_path / "out.tsv"
        with atomic_write(path) as f:
            f.write("data\n")
        assert path.read_text() == "data\n"
        assert not (tmp_path / "out.tsv.tmp").exists()

    def test_failure_leaves_no_file(self, tmp_path):
        path = tmp_path / "out.tsv"
        with pytest.raises(RuntimeError):
            with atomic_write(path) as f:
                f.write("partial")
                raise RuntimeError("boom")
        assert not path.exists()
        assert not (tmp_path / "out.tsv.tmp").exists()

    def test_failure_keeps_previous_file(self, tmp_path):
        path = tmp_path / "out.tsv"
        path.write_text("old\n")
        with pytest.raises(RuntimeError):
            with atomic_write(path) as f:
                f.write("new")
                raise RuntimeError("boom")
        assert path.read_text() == "old\n"


def test_join_names():
    assert join_names(("a", "b")) == "a,b"
    assert join_names(()) == "."


# =============================================================================
# Test tables
# =============================================================================


class TestCandidateTable:
    """Tests for the ranked candidate table."""

    def test_rows(self, candidates, tmp_path):
        path = tmp_path / "sample.fusion_candidates.tsv"
        write_candidates_tsv(candidates, path)
        rows = read_tsv(path)

        assert rows[0] == CANDIDATE_HEADERS
        assert rows[1] == [
            "GENEA--GENEB",
            "2",
            "0",
            "ONLY_REF_SPLICE",
            "GENEA^ENSGA",
            "chr1:400:+",
            "GENEB^ENSGB",
            "chr2:1200:+",
            "r1,r2",
            ".",
        ]
        assert rows[2][3] == "NO_JUNCTION_READS_IDENTIFIED"
        assert rows[2][8] == "."
        assert rows[2][9] == "f1,f2,f3,f4,f5"

    def test_empty(self, tmp_path):
        path = tmp_path / "empty.tsv"
        write_candidates_tsv([], path)
        assert read_tsv(path) == [CANDIDATE_HEADERS]


class TestReadAssignments:
    """Tests for read assignment tables."""

    def test_pairs(self, candidates, tmp_path):
        junction_path = tmp_path / "junction_reads.tsv"
        spanning_path = tmp_path / "spanning_reads.tsv"
        write_read_assignments_tsv(candidates, junction_path, spanning_path)

        junction_rows = read_tsv(junction_path)
        spanning_rows = read_tsv(spanning_path)
        assert junction_rows[1:] == [
            ["GENEA^ENSGA--GENEB^ENSGB", "r1"],
            ["GENEA^ENSGA--GENEB^ENSGB", "r2"],
        ]
        assert len(spanning_rows) == 6


class TestDiagnosticWriter:
    """Tests for the per-record diagnostic table."""

    def test_rows(self, index, tmp_path):
        aggregator = FusionAggregator(BreakpointMatcher(index))
        path = tmp_path / "sample.junction_genes.tsv"

        with DiagnosticWriter(path) as writer:
            writer.write(aggregator.add_record(parse_chimeric_line(junction_line(read_name="r1"))))
            writer.write(aggregator.add_record(parse_chimeric_line(self_fusion_line("s1"))))

        rows = read_tsv(path)
        assert rows[0] == DIAGNOSTIC_HEADERS
        assert rows[1][9] == "r1"
        assert rows[1][14:] == ["GENEA^ENSGA(sense,0)", "GENEB^ENSGB(sense,0)", "ok"]
        assert rows[2][16] == "self_fusion"
        assert writer.count == 2

    def test_unmatched_side_placeholder(self, index, tmp_path):
        aggregator = FusionAggregator(BreakpointMatcher(index))
        path = tmp_path / "diag.tsv"
        line = junction_line(acceptor_chrom="chrUn", read_name="n1")

        with DiagnosticWriter(path) as writer:
            writer.write(aggregator.add_record(parse_chimeric_line(line)))

        assert read_tsv(path)[1][15:] == [".", "no_match"]

    def test_write_requires_open(self, tmp_path):
        writer = DiagnosticWriter(tmp_path / "diag.tsv")
        with pytest.raises(RuntimeError, match="not open"):
            writer.write(None)
