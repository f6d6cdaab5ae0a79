"""Pytest configuration and shared fixtures for FusionForge tests.

Fixtures are organized by category:

- Annotation fixtures: Small synthetic gene models
- Index fixtures: Feature indexes built from them
- Junction fixtures: Chimeric junction lines and files

Synthetic genome layout (all coordinates 1-based, inclusive)::

    GENEA^ENSGA  chr1 +  TXA1: 100-200, 300-400, 500-600
    GENEB^ENSGB  chr2 +  TXB1: 1000-1100, 1200-1300, 1400-1500
    GENEC^ENSGC  chr3 -  TXC1: 5000-5100, 5200-5300
    GENED^ENSGD  chr4 +  TXD1: 100-1000 (single exon)

A canonical GENEA->GENEB split read joins the end of GENEA exon 2 (400)
to the start of GENEB exon 2 (1200).
"""

from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from fusionforge.core.annotation import GeneAnnotation, Transcript
from fusionforge.core.index import FeatureIndex, build_feature_index

# =============================================================================
# Helpers
# =============================================================================


def make_gene(
    name: str,
    gene_id: str,
    chromosome: str,
    strand: str,
    *transcripts: tuple[str, list[tuple[int, int]]],
) -> GeneAnnotation:
    """Build a GeneAnnotation from (transcript_id, exon coords) pairs."""
    return GeneAnnotation.build(
        name,
        gene_id,
        chromosome,
        strand,
        [Transcript.from_coords(tx_id, coords, strand) for tx_id, coords in transcripts],
    )


def junction_line(
    donor_chrom: str = "chr1",
    donor_coord: int = 401,
    donor_strand: str = "+",
    acceptor_chrom: str = "chr2",
    acceptor_coord: int = 1199,
    acceptor_strand: str = "+",
    junction_type: int = 1,
    read_name: str = "read1",
    seg1_start: int = 351,
    seg1_cigar: str = "50M50S",
    seg2_start: int = 1200,
    seg2_cigar: str = "50S50M",
) -> str:
    """Format one 14-column chimeric junction line.

    Defaults describe the canonical GENEA exon 2 -> GENEB exon 2 split read.
    """
    fields = [
        donor_chrom,
        donor_coord,
        donor_strand,
        acceptor_chrom,
        acceptor_coord,
        acceptor_strand,
        junction_type,
        0,
        0,
        read_name,
        seg1_start,
        seg1_cigar,
        seg2_start,
        seg2_cigar,
    ]
    return "\t".join(str(f) for f in fields) + "\n"


def antisense_line(read_name: str) -> str:
    """GENEA->GENEB reference junction observed on the opposite strand."""
    return junction_line(
        donor_chrom="chr2",
        donor_coord=1199,
        donor_strand="-",
        acceptor_chrom="chr1",
        acceptor_coord=401,
        acceptor_strand="-",
        read_name=read_name,
        seg1_start=1200,
        seg1_cigar="50M50S",
        seg2_start=351,
        seg2_cigar="50S50M",
    )


def spanning_line(read_name: str) -> str:
    """GENEA/GENEB encompassing read pair."""
    return junction_line(
        junction_type=-1,
        read_name=read_name,
        seg1_cigar="50M",
        seg2_cigar="50M",
    )


def novel_line(read_name: str) -> str:
    """GENEA->GENEB split read breaking 5 bp inside GENEA exon 2."""
    return junction_line(
        donor_coord=396,
        read_name=read_name,
        seg1_start=346,
    )


def self_fusion_line(read_name: str) -> str:
    """Split read joining GENEA exon 1 to GENEA exon 2."""
    return junction_line(
        donor_coord=201,
        acceptor_chrom="chr1",
        acceptor_coord=299,
        read_name=read_name,
        seg1_start=151,
        seg2_start=300,
    )


# =============================================================================
# Annotation Fixtures
# =============================================================================


@pytest.fixture
def genes() -> list[GeneAnnotation]:
    """The four synthetic genes."""
    return [
        make_gene("GENEA", "ENSGA", "chr1", "+", ("TXA1", [(100, 200), (300, 400), (500, 600)])),
        make_gene("GENEB", "ENSGB", "chr2", "+", ("TXB1", [(1000, 1100), (1200, 1300), (1400, 1500)])),
        make_gene("GENEC", "ENSGC", "chr3", "-", ("TXC1", [(5000, 5100), (5200, 5300)])),
        make_gene("GENED", "ENSGD", "chr4", "+", ("TXD1", [(100, 1000)])),
    ]


@pytest.fixture
def index(genes: list[GeneAnnotation]) -> FeatureIndex:
    """Feature index over the synthetic genes."""
    return build_feature_index(genes)


@pytest.fixture
def gff3_file(tmp_path: Path) -> Path:
    """GFF3 file describing GENEA (two isoforms) and GENEB."""
    path = tmp_path / "genes.gff3"
    path.write_text(
        "##gff-version 3\n"
        "chr1\ttest\tgene\t100\t600\t.\t+\t.\tID=ENSGA;Name=GENEA\n"
        "chr1\ttest\tmRNA\t100\t600\t.\t+\t.\tID=TXA1;Parent=ENSGA\n"
        "chr1\ttest\texon\t100\t200\t.\t+\t.\tParent=TXA1\n"
        "chr1\ttest\texon\t300\t400\t.\t+\t.\tParent=TXA1\n"
        "chr1\ttest\texon\t500\t600\t.\t+\t.\tParent=TXA1\n"
        "chr1\ttest\tmRNA\t100\t600\t.\t+\t.\tID=TXA2;Parent=ENSGA\n"
        "chr1\ttest\texon\t100\t200\t.\t+\t.\tParent=TXA2\n"
        "chr1\ttest\texon\t500\t600\t.\t+\t.\tParent=TXA2\n"
        "chr2\ttest\tgene\t1000\t1500\t.\t+\t.\tID=ENSGB;Name=GENEB\n"
        "chr2\ttest\tmRNA\t1000\t1500\t.\t+\t.\tID=TXB1;Parent=ENSGB\n"
        "chr2\ttest\texon\t1000\t1100\t.\t+\t.\tParent=TXB1\n"
        "chr2\ttest\texon\t1200\t1300\t.\t+\t.\tParent=TXB1\n"
        "chr2\ttest\texon\t1400\t1500\t.\t+\t.\tParent=TXB1\n"
    )
    return path


@pytest.fixture
def gtf_file(tmp_path: Path) -> Path:
    """GTF file with the same GENEA/GENEB models as gff3_file (one isoform each)."""
    path = tmp_path / "genes.gtf"
    rows = [
        ("chr1", 100, 200, "+", "ENSGA", "TXA1", "GENEA"),
        ("chr1", 300, 400, "+", "ENSGA", "TXA1", "GENEA"),
        ("chr1", 500, 600, "+", "ENSGA", "TXA1", "GENEA"),
        ("chr2", 1000, 1100, "+", "ENSGB", "TXB1", "GENEB"),
        ("chr2", 1200, 1300, "+", "ENSGB", "TXB1", "GENEB"),
        ("chr2", 1400, 1500, "+", "ENSGB", "TXB1", "GENEB"),
    ]
    with open(path, "w") as f:
        for chrom, start, end, strand, gene_id, tx_id, name in rows:
            f.write(
                f"{chrom}\ttest\texon\t{start}\t{end}\t.\t{strand}\t.\t"
                f'gene_id "{gene_id}"; transcript_id "{tx_id}"; gene_name "{name}";\n'
            )
    return path


# =============================================================================
# Junction Fixtures
# =============================================================================


@pytest.fixture
def junction_file(tmp_path: Path) -> Path:
    """Junction file with one well-supported GENEA->GENEB fusion.

    - read1..read3: reference-splice split reads (read3 antisense)
    - frag1, frag2, read1: spanning pairs (read1 also a split read)
    - novel1, novel2: novel breakpoint below the default threshold
    - self1: GENEA self-fusion
    """
    path = tmp_path / "Chimeric.out.junction"
    lines = [
        junction_line(read_name="read1"),
        junction_line(read_name="read2"),
        antisense_line("read3"),
        spanning_line("frag1"),
        spanning_line("frag2"),
        spanning_line("read1"),
        novel_line("novel1"),
        novel_line("novel2"),
        self_fusion_line("self1"),
    ]
    path.write_text("".join(lines))
    return path


@pytest.fixture
def gzipped_junction_file(junction_file: Path) -> Path:
    """The junction_file contents, gzip-compressed."""
    gz_path = junction_file.with_name(junction_file.name + ".gz")
    with gzip.open(gz_path, "wt") as f:
        f.write(junction_file.read_text())
    return gz_path
