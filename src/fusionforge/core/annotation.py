"""Reference gene annotation model.

Immutable gene, transcript and exon value types consumed by the feature
index. Coordinates are 1-based and inclusive.

Key components:
- GeneKey: Composite (gene_name, gene_id) identity of a gene
- Exon: One exon of a transcript
- Transcript: Ordered exon chain of one isoform
- GeneAnnotation: A gene with all of its isoforms

Example:
    >>> from fusionforge.core.annotation import GeneAnnotation, Transcript, Exon
    >>> tx = Transcript.from_coords("TX1", [(100, 200), (300, 400)], strand="+")
    >>> gene = GeneAnnotation.build("GENEA", "ENSG1", "chr1", "+", [tx])
    >>> gene.key
    GeneKey(gene_name='GENEA', gene_id='ENSG1')
    >>> gene.extent
    Interval(start=100, end=400)
"""

from __future__ import annotations

from typing import Iterable, Literal

import attrs

from fusionforge.utils.intervals import Interval, span

Strand = Literal["+", "-"]

VALID_STRANDS = ("+", "-")


def flip_strand(strand: str) -> str:
    """Return the opposite strand."""
    return "-" if strand == "+" else "+"


def _check_strand(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if value not in VALID_STRANDS:
        raise ValueError(f"{attribute.name} must be '+' or '-', got {value!r}")


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen(order=True)
class GeneKey:
    """Identity of a gene within a chromosome.

    Two genes sharing a display name but carrying different ids remain
    distinct keys.

    Attributes:
        gene_name: Display name (e.g. gene symbol).
        gene_id: Stable identifier.
    """

    gene_name: str
    gene_id: str

    def __str__(self) -> str:
        return f"{self.gene_name}^{self.gene_id}"


@attrs.frozen
class Exon:
    """A single exon.

    Attributes:
        lend: Leftmost genomic coordinate (1-based, inclusive).
        rend: Rightmost genomic coordinate (1-based, inclusive).
        strand: Strand of the owning transcript.
        order_index: Position of the exon in its transcript's exon list.
        is_terminal: True for the first and last exons of the transcript.
    """

    lend: int
    rend: int
    strand: str = attrs.field(validator=_check_strand)
    order_index: int = 0
    is_terminal: bool = False

    def __attrs_post_init__(self) -> None:
        if self.lend > self.rend:
            raise ValueError(f"Exon lend {self.lend} > rend {self.rend}")

    @property
    def end5(self) -> int:
        """Transcript 5' end of the exon."""
        return self.lend if self.strand == "+" else self.rend

    @property
    def end3(self) -> int:
        """Transcript 3' end of the exon."""
        return self.rend if self.strand == "+" else self.lend

    @property
    def interval(self) -> Interval:
        return Interval(self.lend, self.rend)


@attrs.frozen
class Transcript:
    """One isoform: an ordered chain of exons.

    Attributes:
        transcript_id: Isoform identifier.
        exons: Exons ordered by ``lend``.
    """

    transcript_id: str
    exons: tuple[Exon, ...]
    _rend: int = attrs.field(init=False, repr=False, eq=False)

    def __attrs_post_init__(self) -> None:
        if not self.exons:
            raise ValueError(f"Transcript {self.transcript_id} has no exons")
        lends = [exon.lend for exon in self.exons]
        if lends != sorted(lends):
            raise ValueError(f"Exons of transcript {self.transcript_id} are not ordered by lend")
        # exons are ordered by lend only, so the rightmost end needs a scan
        object.__setattr__(self, "_rend", max(exon.rend for exon in self.exons))

    @classmethod
    def from_coords(
        cls,
        transcript_id: str,
        coords: Iterable[tuple[int, int]],
        strand: str,
    ) -> Transcript:
        """Build a transcript from (lend, rend) pairs in any order.

        Exons are sorted by ``lend``; the first and last are flagged terminal.
        """
        ordered = sorted(coords)
        last = len(ordered) - 1
        exons = tuple(
            Exon(
                lend=lend,
                rend=rend,
                strand=strand,
                order_index=i,
                is_terminal=i in (0, last),
            )
            for i, (lend, rend) in enumerate(ordered)
        )
        return cls(transcript_id=transcript_id, exons=exons)

    @property
    def lend(self) -> int:
        return self.exons[0].lend

    @property
    def rend(self) -> int:
        return self._rend

    @property
    def n_exons(self) -> int:
        return len(self.exons)

    def contains(self, position: int) -> bool:
        """Check whether a coordinate lies within the transcript span."""
        return self.lend <= position <= self.rend


@attrs.frozen
class GeneAnnotation:
    """A gene and all of its isoforms.

    Attributes:
        key: Composite gene identity.
        chromosome: Chromosome/contig name.
        strand: Gene strand (+ or -).
        transcripts: Isoforms in declaration order.
    """

    key: GeneKey
    chromosome: str
    strand: str = attrs.field(validator=_check_strand)
    transcripts: tuple[Transcript, ...] = ()

    @classmethod
    def build(
        cls,
        gene_name: str,
        gene_id: str,
        chromosome: str,
        strand: str,
        transcripts: Iterable[Transcript],
    ) -> GeneAnnotation:
        return cls(
            key=GeneKey(gene_name, gene_id),
            chromosome=chromosome,
            strand=strand,
            transcripts=tuple(transcripts),
        )

    @property
    def gene_name(self) -> str:
        return self.key.gene_name

    @property
    def gene_id(self) -> str:
        return self.key.gene_id

    @property
    def extent(self) -> Interval:
        """Span of all exons across all isoforms."""
        return span([exon.interval for tx in self.transcripts for exon in tx.exons])

    @property
    def n_exons(self) -> int:
        return sum(tx.n_exons for tx in self.transcripts)
