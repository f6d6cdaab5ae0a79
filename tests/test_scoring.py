"""Tests for candidate scoring and ranking."""

import pytest

from fusionforge.config import ScoringConfig
from fusionforge.core.aggregate import BreakpointKey, FusionIdentity, FusionKey
from fusionforge.core.annotation import GeneKey
from fusionforge.core.scoring import (
    CandidateScorer,
    FusionCandidate,
    SpliceType,
    rank_candidates,
    summarize_candidates,
)

GENEA = GeneKey("GENEA", "ENSGA")
GENEB = GeneKey("GENEB", "ENSGB")
A_B = FusionKey(GENEA, GENEB)

REF = BreakpointKey("chr1", 400, "+", 0, "chr2", 1200, "+", 0)
NOVEL = BreakpointKey("chr1", 395, "+", 5, "chr2", 1200, "+", 0)


def make_identity(breakpoints=None, spanning=()):
    identity = FusionIdentity(A_B, "chr1", 400, "+", "chr2", 1200, "+")
    for breakpoint, reads in (breakpoints or {}).items():
        for read in reads:
            identity.add_junction_read(breakpoint, read)
    for read in spanning:
        identity.add_spanning_read(read)
    return identity


def make_candidate(name, score):
    return FusionCandidate(
        fusion=FusionKey(GeneKey(name, name), GENEB),
        breakpoint=None,
        splice_type=SpliceType.NO_JUNCTION_READS_IDENTIFIED,
        junction_reads=(),
        spanning_frags=(),
        left_position="chr1:1:+",
        right_position="chr2:1:+",
        left_delta=None,
        right_delta=None,
        score=score,
    )


@pytest.fixture
def scorer():
    return CandidateScorer()


# =============================================================================
# Test classification and score
# =============================================================================


class TestClassify:
    """Tests for splice type classification."""

    def test_reference(self, scorer):
        assert scorer.classify(REF) is SpliceType.ONLY_REF_SPLICE

    def test_novel_on_either_side(self, scorer):
        right_novel = BreakpointKey("chr1", 400, "+", 0, "chr2", 1201, "+", 1)
        assert scorer.classify(NOVEL) is SpliceType.INCL_NON_REF_SPLICE
        assert scorer.classify(right_novel) is SpliceType.INCL_NON_REF_SPLICE


class TestScore:
    """Tests for the composite score."""

    def test_default_weight(self, scorer):
        assert scorer.score(3, 2) == 14

    def test_custom_weight(self):
        scorer = CandidateScorer(ScoringConfig(junction_read_weight=1))
        assert scorer.score(3, 2) == 5


# =============================================================================
# Test score_identity
# =============================================================================


class TestScoreIdentity:
    """Tests for turning one identity into candidates."""

    def test_reference_breakpoint_with_spanning(self, scorer):
        """Three split reads and two spanning fragments score 14."""
        identity = make_identity({REF: ["r1", "r2", "r3"]}, spanning=["f1", "f2"])
        [candidate] = scorer.score_identity(identity)

        assert candidate.score == 14
        assert candidate.splice_type is SpliceType.ONLY_REF_SPLICE
        assert candidate.junction_reads == ("r1", "r2", "r3")
        assert candidate.spanning_frags == ("f1", "f2")
        assert candidate.left_position == "chr1:400:+"
        assert candidate.right_position == "chr2:1200:+"
        assert (candidate.left_delta, candidate.right_delta) == (0, 0)
        assert candidate.display_name == "GENEA--GENEB"
        assert candidate.fusion_name == "GENEA^ENSGA--GENEB^ENSGB"

    def test_split_read_not_counted_as_spanning(self, scorer):
        """A read that is both split and spanning counts only as split."""
        identity = make_identity({REF: ["r1", "r2", "r3"]}, spanning=["f1", "f2", "r1"])
        [candidate] = scorer.score_identity(identity)

        assert candidate.spanning_frags == ("f1", "f2")
        assert not set(candidate.junction_reads) & set(candidate.spanning_frags)
        assert candidate.score == 14

    def test_novel_below_threshold_dropped(self, scorer):
        """Novel breakpoints need at least the minimum split reads."""
        identity = make_identity({NOVEL: ["n1", "n2"]})
        assert scorer.score_identity(identity) == []

    def test_novel_at_threshold_kept(self, scorer):
        """The novel-support threshold is inclusive."""
        identity = make_identity({NOVEL: ["n1", "n2", "n3"]})
        [candidate] = scorer.score_identity(identity)
        assert candidate.splice_type is SpliceType.INCL_NON_REF_SPLICE
        assert candidate.left_delta == 5

    def test_reference_needs_single_read(self, scorer):
        """Reference breakpoints are kept with any support."""
        [candidate] = scorer.score_identity(make_identity({REF: ["r1"]}))
        assert candidate.score == 4

    def test_breakpoints_by_descending_support(self, scorer):
        """Each qualifying breakpoint is a candidate, best supported first."""
        identity = make_identity({REF: ["r1"], NOVEL: ["n1", "n2", "n3"]})
        candidates = scorer.score_identity(identity)
        assert [c.breakpoint for c in candidates] == [NOVEL, REF]

    def test_equal_support_ordered_by_breakpoint(self, scorer):
        """Breakpoints with equal support are visited in key order."""
        other = BreakpointKey("chr1", 400, "+", 0, "chr2", 1400, "+", 0)
        identity = make_identity({other: ["r2"], REF: ["r1"]})
        candidates = scorer.score_identity(identity)
        assert [c.breakpoint for c in candidates] == [REF, other]

    def test_spanning_only_at_threshold(self, scorer):
        """Spanning-only identities need the span-only minimum."""
        identity = make_identity(spanning=["f1", "f2", "f3", "f4", "f5"])
        [candidate] = scorer.score_identity(identity)

        assert candidate.splice_type is SpliceType.NO_JUNCTION_READS_IDENTIFIED
        assert candidate.breakpoint is None
        assert candidate.score == 5
        assert candidate.junction_reads == ()
        assert candidate.left_delta is None
        assert candidate.left_position == "chr1:400:+"

    def test_spanning_only_below_threshold(self, scorer):
        identity = make_identity(spanning=["f1", "f2", "f3", "f4"])
        assert scorer.score_identity(identity) == []

    def test_custom_thresholds(self):
        scorer = CandidateScorer(ScoringConfig(min_novel_junction_support=1, min_span_only_support=1))
        assert len(scorer.score_identity(make_identity({NOVEL: ["n1"]}))) == 1
        assert len(scorer.score_identity(make_identity(spanning=["f1"]))) == 1


# =============================================================================
# Test ranking
# =============================================================================


class TestRanking:
    """Tests for ordering candidates."""

    def test_descending_score_with_stable_ties(self):
        """Equal scores keep their production order."""
        candidates = [
            make_candidate("A", 14),
            make_candidate("B", 5),
            make_candidate("C", 14),
            make_candidate("D", 2),
        ]
        ranked = rank_candidates(candidates)
        assert [c.fusion.left.gene_name for c in ranked] == ["A", "C", "B", "D"]

    def test_rank_identities(self, scorer):
        """rank scores every identity and sorts the union."""
        weak = make_identity({REF: ["r1"]})
        strong = FusionIdentity(FusionKey(GENEB, GENEA), "chr2", 1500, "+", "chr1", 100, "+")
        for read in ("x1", "x2"):
            strong.add_junction_read(
                BreakpointKey("chr2", 1500, "+", 0, "chr1", 100, "+", 0), read
            )
        ranked = scorer.rank([weak, strong])
        assert [c.display_name for c in ranked] == ["GENEB--GENEA", "GENEA--GENEB"]

    def test_summarize(self):
        candidates = [make_candidate("A", 5), make_candidate("B", 6)]
        summary = summarize_candidates(candidates)
        assert summary["n_candidates"] == 2
        assert summary["NO_JUNCTION_READS_IDENTIFIED"] == 2
        assert summary["ONLY_REF_SPLICE"] == 0
