"""GFF3/GTF annotation loading.

Reads exon records from a GFF3 or GTF file and assembles them into
GeneAnnotation objects for the feature index. Only exon lines are
required: genes and transcripts are implied by the exon parent
attributes, and explicit gene lines only contribute display names.

Features:
    - GFF3 (``ID``/``Parent``/``Name``) and GTF (``gene_id``/``transcript_id``/``gene_name``)
    - Gzip-compressed input
    - Coordinates kept 1-based inclusive

Example:
    >>> from fusionforge.io.gff import AnnotationParser
    >>> parser = AnnotationParser("gencode.gtf.gz")
    >>> genes = list(parser.iter_genes())
    >>> genes[0].key
    GeneKey(gene_name='DDX11L1', gene_id='ENSG00000223972')
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterator

import attrs

from fusionforge.core.annotation import VALID_STRANDS, GeneAnnotation, Transcript
from fusionforge.io.chimeric import open_text

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Column indices (shared by GFF3 and GTF)
COL_SEQID = 0
COL_SOURCE = 1
COL_TYPE = 2
COL_START = 3
COL_END = 4
COL_SCORE = 5
COL_STRAND = 6
COL_PHASE = 7
COL_ATTRIBUTES = 8

FEATURE_TYPES_GENE = {"gene"}
FEATURE_TYPES_TRANSCRIPT = {"mRNA", "transcript", "ncRNA", "lnc_RNA"}
FEATURE_TYPES_EXON = {"exon"}

_GTF_ATTRIBUTE = re.compile(r'(\S+)\s+"([^"]*)"')


class AnnotationFormatError(ValueError):
    """Raised when an annotation line is malformed."""

    pass


# =============================================================================
# Attribute Parsing
# =============================================================================


def parse_gff3_attributes(attr_string: str) -> dict[str, str]:
    """Parse GFF3 attribute string into dictionary.

    Args:
        attr_string: Semicolon-separated key=value pairs.

    Returns:
        Dictionary of attribute key-value pairs.
    """
    attributes: dict[str, str] = {}
    if not attr_string or attr_string == ".":
        return attributes

    for item in attr_string.split(";"):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, value = item.split("=", 1)
        value = value.replace("%3B", ";").replace("%3D", "=").replace("%26", "&")
        value = value.replace("%2C", ",")
        attributes[key] = value

    return attributes


def parse_gtf_attributes(attr_string: str) -> dict[str, str]:
    """Parse GTF attribute string (``key "value";``) into dictionary."""
    return dict(_GTF_ATTRIBUTE.findall(attr_string))


def detect_format(path: Path) -> str:
    """Guess ``gtf`` or ``gff3`` from the file name."""
    name = path.name.lower()
    if name.endswith(".gz"):
        name = name[:-3]
    return "gtf" if name.endswith(".gtf") else "gff3"


# =============================================================================
# Builders
# =============================================================================


@attrs.define
class _TranscriptBuilder:
    transcript_id: str
    gene_id: str
    exons: list[tuple[int, int]] = attrs.Factory(list)


@attrs.define
class _GeneBuilder:
    gene_id: str
    seqid: str
    strand: str
    gene_name: str | None = None
    transcripts: dict[str, _TranscriptBuilder] = attrs.Factory(dict)


# =============================================================================
# Parser
# =============================================================================


class AnnotationParser:
    """Assemble gene annotations from a GFF3 or GTF file.

    Attributes:
        path: Path to the annotation file.
        format: ``gff3`` or ``gtf``.

    Example:
        >>> parser = AnnotationParser("annotations.gff3")
        >>> for gene in parser.iter_genes():
        ...     print(gene.key, len(gene.transcripts))
    """

    def __init__(self, path: Path | str, format: str | None = None) -> None:
        """Initialize the parser.

        Args:
            path: Path to annotation file (optionally gzipped).
            format: Force ``gff3`` or ``gtf``; detected from the name if None.

        Raises:
            FileNotFoundError: If file doesn't exist.
            ValueError: If the format is unknown.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Annotation file not found: {self.path}")

        self.format = format or detect_format(self.path)
        if self.format not in ("gff3", "gtf"):
            raise ValueError(f"Unknown annotation format: {self.format}")

        self._genes: list[GeneAnnotation] | None = None

    def _parse_line(self, line: str, line_number: int) -> dict[str, Any] | None:
        """Parse a single annotation line.

        Returns:
            Parsed feature dictionary or None for comments/empty lines.

        Raises:
            AnnotationFormatError: If the line is malformed.
        """
        line = line.rstrip("\r\n")
        if not line.strip() or line.startswith("#"):
            return None

        parts = line.split("\t")
        if len(parts) < 9:
            raise AnnotationFormatError(
                f"{self.path.name}:{line_number}: expected 9 columns, found {len(parts)}"
            )

        try:
            start = int(parts[COL_START])
            end = int(parts[COL_END])
        except ValueError as e:
            raise AnnotationFormatError(f"{self.path.name}:{line_number}: {e}") from e

        if start > end:
            raise AnnotationFormatError(
                f"{self.path.name}:{line_number}: start {start} > end {end}"
            )

        strand = parts[COL_STRAND]
        if parts[COL_TYPE] in FEATURE_TYPES_EXON and strand not in VALID_STRANDS:
            raise AnnotationFormatError(
                f"{self.path.name}:{line_number}: exon has invalid strand {strand!r}"
            )

        if self.format == "gtf":
            attributes = parse_gtf_attributes(parts[COL_ATTRIBUTES])
        else:
            attributes = parse_gff3_attributes(parts[COL_ATTRIBUTES])

        return {
            "seqid": parts[COL_SEQID],
            "type": parts[COL_TYPE],
            "start": start,
            "end": end,
            "strand": strand,
            "attributes": attributes,
        }

    def _build_genes(self) -> list[GeneAnnotation]:
        """Build gene annotations from the file."""
        genes: dict[tuple[str, str], _GeneBuilder] = {}
        gene_names: dict[str, str] = {}
        transcript_parent: dict[str, str] = {}
        exon_features: list[dict[str, Any]] = []

        with open_text(self.path) as f:
            for line_number, line in enumerate(f, 1):
                feature = self._parse_line(line, line_number)
                if feature is None:
                    continue

                ftype = feature["type"]
                attrs_ = feature["attributes"]

                if self.format == "gtf":
                    if ftype in FEATURE_TYPES_EXON:
                        exon_features.append(feature)
                    if "gene_id" in attrs_ and "gene_name" in attrs_:
                        gene_names.setdefault(attrs_["gene_id"], attrs_["gene_name"])
                    continue

                if ftype in FEATURE_TYPES_GENE and "ID" in attrs_:
                    gene_names[attrs_["ID"]] = attrs_.get("Name", attrs_.get("gene_name", attrs_["ID"]))
                elif ftype in FEATURE_TYPES_TRANSCRIPT and "ID" in attrs_:
                    transcript_parent[attrs_["ID"]] = attrs_.get("Parent", "").split(",")[0]
                elif ftype in FEATURE_TYPES_EXON:
                    exon_features.append(feature)

        for feature in exon_features:
            for gene_id, transcript_id in self._exon_parents(feature, transcript_parent):
                slot = (feature["seqid"], gene_id)
                gene = genes.get(slot)
                if gene is None:
                    gene = _GeneBuilder(gene_id=gene_id, seqid=feature["seqid"], strand=feature["strand"])
                    genes[slot] = gene
                elif gene.strand != feature["strand"]:
                    raise AnnotationFormatError(
                        f"Gene {gene_id} has exons on both strands of {feature['seqid']}"
                    )
                transcript = gene.transcripts.get(transcript_id)
                if transcript is None:
                    transcript = _TranscriptBuilder(transcript_id=transcript_id, gene_id=gene_id)
                    gene.transcripts[transcript_id] = transcript
                transcript.exons.append((feature["start"], feature["end"]))

        result = [
            GeneAnnotation.build(
                gene_name=gene_names.get(builder.gene_id, builder.gene_id),
                gene_id=builder.gene_id,
                chromosome=builder.seqid,
                strand=builder.strand,
                transcripts=[
                    Transcript.from_coords(tx.transcript_id, tx.exons, builder.strand)
                    for tx in builder.transcripts.values()
                ],
            )
            for builder in genes.values()
        ]

        n_transcripts = sum(len(g.transcripts) for g in result)
        logger.info(f"Parsed {len(result):,} genes, {n_transcripts:,} transcripts from {self.path.name}")
        return result

    def _exon_parents(
        self,
        feature: dict[str, Any],
        transcript_parent: dict[str, str],
    ) -> list[tuple[str, str]]:
        """Resolve (gene_id, transcript_id) owners of an exon."""
        attributes = feature["attributes"]

        if self.format == "gtf":
            if "gene_id" not in attributes or "transcript_id" not in attributes:
                logger.warning(
                    f"Skipping exon at {feature['seqid']}:{feature['start']} without gene_id/transcript_id"
                )
                return []
            return [(attributes["gene_id"], attributes["transcript_id"])]

        parents = [p for p in attributes.get("Parent", "").split(",") if p]
        if not parents:
            logger.warning(f"Skipping exon at {feature['seqid']}:{feature['start']} without Parent")
            return []

        owners = []
        for transcript_id in parents:
            # Exons parented directly by a gene form a single implicit transcript
            gene_id = transcript_parent.get(transcript_id) or transcript_id
            owners.append((gene_id, transcript_id))
        return owners

    def iter_genes(self) -> Iterator[GeneAnnotation]:
        """Iterate over assembled genes in first-seen order.

        Yields:
            GeneAnnotation objects.
        """
        if self._genes is None:
            self._genes = self._build_genes()
        yield from self._genes


# =============================================================================
# Convenience Functions
# =============================================================================


def read_annotation(path: Path | str, format: str | None = None) -> list[GeneAnnotation]:
    """Read gene annotations from a GFF3 or GTF file.

    Args:
        path: Path to the annotation file.
        format: Force ``gff3`` or ``gtf``.

    Returns:
        List of GeneAnnotation objects.
    """
    return list(AnnotationParser(path, format=format).iter_genes())
