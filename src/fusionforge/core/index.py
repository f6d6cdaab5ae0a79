"""Genome feature index for fast breakpoint-to-gene lookup.

The index is built once from the parsed annotation and is read-only
afterwards. Each chromosome gets an interval tree over gene extents
(min exon lend to max exon rend across all isoforms); the exon table keeps
the full transcript/exon structure per gene.

Key components:
- ExonRecord: An exon tagged with its gene and transcript
- ExonTable: Gene -> annotation and flat exon listing
- ChromosomeIndex: Per-chromosome interval trees over gene extents
- FeatureIndex: Both of the above, as returned by build_feature_index

Example:
    >>> from fusionforge.core.index import build_feature_index
    >>> index = build_feature_index(genes)
    >>> index.chromosomes.query("chr1", 1000, 2000)
    {GeneKey(gene_name='GENEA', gene_id='ENSG1')}
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Iterator, NamedTuple

import attrs
from intervaltree import IntervalTree

from fusionforge.core.annotation import Exon, GeneAnnotation, GeneKey, Transcript

logger = logging.getLogger(__name__)


class DuplicateGeneError(ValueError):
    """Raised when the same gene key appears twice on one chromosome."""

    pass


# =============================================================================
# Exon Table
# =============================================================================


class ExonRecord(NamedTuple):
    """An exon with its gene and transcript association."""

    gene_key: GeneKey
    transcript: Transcript
    exon: Exon


class ExonTable:
    """Structured exon storage keyed by chromosome and gene.

    Genes are keyed by ``(chromosome, GeneKey)`` since a gene key is only
    unique within a chromosome.
    """

    def __init__(self) -> None:
        self._genes: dict[tuple[str, GeneKey], GeneAnnotation] = {}

    def add_gene(self, gene: GeneAnnotation) -> None:
        """Register a gene.

        Raises:
            DuplicateGeneError: If the gene key is already present on the chromosome.
        """
        slot = (gene.chromosome, gene.key)
        if slot in self._genes:
            raise DuplicateGeneError(f"Gene {gene.key} defined twice on {gene.chromosome}")
        self._genes[slot] = gene

    def get_gene(self, chromosome: str, gene_key: GeneKey) -> GeneAnnotation:
        return self._genes[(chromosome, gene_key)]

    def iter_exons(self, chromosome: str, gene_key: GeneKey) -> Iterator[ExonRecord]:
        """Yield every exon of every isoform of a gene, in declaration order."""
        gene = self._genes[(chromosome, gene_key)]
        for transcript in gene.transcripts:
            for exon in transcript.exons:
                yield ExonRecord(gene_key, transcript, exon)

    def __contains__(self, item: tuple[str, GeneKey]) -> bool:
        return item in self._genes

    def __len__(self) -> int:
        return len(self._genes)

    @property
    def n_transcripts(self) -> int:
        return sum(len(gene.transcripts) for gene in self._genes.values())

    @property
    def n_exons(self) -> int:
        return sum(gene.n_exons for gene in self._genes.values())


# =============================================================================
# Chromosome Index
# =============================================================================


class ChromosomeIndex:
    """Interval trees over gene extents, one per chromosome.

    Queries take 1-based inclusive bounds. The underlying trees store
    half-open intervals, so a gene spanning ``[lend, rend]`` is stored as
    ``[lend, rend + 1)``.
    """

    def __init__(self, trees: dict[str, IntervalTree]) -> None:
        self._trees = trees

    @property
    def chromosomes(self) -> list[str]:
        return sorted(self._trees)

    def n_genes(self, chromosome: str) -> int:
        tree = self._trees.get(chromosome)
        return len(tree) if tree is not None else 0

    def query(self, chromosome: str, lend: int, rend: int) -> set[GeneKey]:
        """Find genes whose extent overlaps ``[lend, rend]``.

        Args:
            chromosome: Chromosome name.
            lend: Query start (1-based, inclusive).
            rend: Query end (1-based, inclusive).

        Returns:
            Set of overlapping gene keys. Empty for unknown chromosomes,
            zero-width queries (``lend == rend``) and inverted bounds.
        """
        if rend < lend:
            logger.error(f"Inverted query interval {chromosome}:{lend}-{rend}; treating as no match")
            return set()
        if lend == rend:
            return set()

        tree = self._trees.get(chromosome)
        if tree is None:
            return set()

        return {iv.data for iv in tree.overlap(lend, rend + 1)}


# =============================================================================
# Builder
# =============================================================================


@attrs.frozen
class FeatureIndex:
    """Read-only genome feature index.

    Attributes:
        chromosomes: Interval index over gene extents.
        exons: Exon table for the same genes.
    """

    chromosomes: ChromosomeIndex
    exons: ExonTable

    def query(self, chromosome: str, lend: int, rend: int) -> set[GeneKey]:
        return self.chromosomes.query(chromosome, lend, rend)

    def iter_exons(self, chromosome: str, gene_key: GeneKey) -> Iterator[ExonRecord]:
        return self.exons.iter_exons(chromosome, gene_key)

    def get_gene(self, chromosome: str, gene_key: GeneKey) -> GeneAnnotation:
        return self.exons.get_gene(chromosome, gene_key)


def build_feature_index(genes: Iterable[GeneAnnotation]) -> FeatureIndex:
    """Build the chromosome interval index and exon table.

    Every exon of every isoform is recorded and each gene's extent is the
    span of all of them. One interval tree per chromosome is constructed
    only after all genes on it have been collected.

    Args:
        genes: Parsed gene annotations.

    Returns:
        FeatureIndex ready for querying.

    Raises:
        DuplicateGeneError: If a gene key repeats on a chromosome.
    """
    table = ExonTable()
    extents: dict[str, list[tuple[int, int, GeneKey]]] = defaultdict(list)

    for gene in genes:
        if not gene.transcripts:
            logger.warning(f"Gene {gene.key} on {gene.chromosome} has no transcripts; skipping")
            continue
        table.add_gene(gene)
        extent = gene.extent
        extents[gene.chromosome].append((extent.start, extent.end, gene.key))

    trees = {
        chromosome: IntervalTree.from_tuples((lend, rend + 1, key) for lend, rend, key in spans)
        for chromosome, spans in extents.items()
    }

    logger.info(
        f"Indexed {len(table):,} genes, {table.n_transcripts:,} transcripts, "
        f"{table.n_exons:,} exons on {len(trees)} chromosomes"
    )
    return FeatureIndex(chromosomes=ChromosomeIndex(trees), exons=table)
