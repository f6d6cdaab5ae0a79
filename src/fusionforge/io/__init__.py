"""Input/output handlers for FusionForge.

- Chimeric junction tables from the spliced aligner
- GFF3/GTF gene annotations
- Candidate, diagnostic and read-assignment tables

Example:
    >>> from fusionforge.io import iter_chimeric_records, read_annotation
    >>> genes = read_annotation("genes.gtf")
    >>> records = iter_chimeric_records("Chimeric.out.junction")
"""

from fusionforge.io.chimeric import ChimericFormatError, ChimericRecord, iter_chimeric_records
from fusionforge.io.gff import AnnotationFormatError, AnnotationParser, read_annotation

__all__: list[str] = [
    "ChimericFormatError",
    "ChimericRecord",
    "iter_chimeric_records",
    "AnnotationFormatError",
    "AnnotationParser",
    "read_annotation",
]
