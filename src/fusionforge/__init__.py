"""FusionForge: gene fusion prediction from RNA-seq chimeric alignments.

FusionForge maps the two breakpoints of every chimeric alignment onto
annotated exon boundaries, aggregates split-read and spanning-fragment
support per fusion, and ranks the resulting candidates.

Example:
    >>> import fusionforge
    >>> fusionforge.__version__
    '0.1.0'

Modules:
    core: Feature index, CIGAR resolution, matching, aggregation, scoring
    io: Chimeric junction, annotation and output table handlers
    pipeline: End-to-end prediction run
    utils: General utilities
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
