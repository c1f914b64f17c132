"""
mtcirc - Core Library

Converts alignments made against an extended (circularised) reference back
to the single-copy linear reference:
- Reference geometry and coordinate wrapping
- CIGAR model and the seam-locating walker
- Record classification, rewriting and splitting
- SAM/BAM conversion driver (pysam)
"""

__version__ = "1.0.0"

from .errors import (
    LinToCircError,
    ConfigurationError,
    MalformedCigarError,
    ReferenceMismatchError,
)

from .geometry import (
    ReferenceGeometry,
    MT_GENOME_LENGTH,
    MT_TARGET_NAME,
)

from .cigar import (
    CigarKind,
    CigarOp,
    parse_cigar,
    format_cigar,
)

from .records import AlignmentRecord

from .mapper import (
    classify,
    NonSpanning,
    Spanning,
)

from .walker import (
    SplitPoint,
    locate_split,
)

from .partition import (
    SplitOptions,
    rewrite,
    partition,
    split_operations,
    transform_record,
)

__all__ = [
    # Errors
    "LinToCircError",
    "ConfigurationError",
    "MalformedCigarError",
    "ReferenceMismatchError",
    # Geometry
    "ReferenceGeometry",
    "MT_GENOME_LENGTH",
    "MT_TARGET_NAME",
    # CIGAR
    "CigarKind",
    "CigarOp",
    "parse_cigar",
    "format_cigar",
    # Records
    "AlignmentRecord",
    "classify",
    "NonSpanning",
    "Spanning",
    "SplitPoint",
    "locate_split",
    "SplitOptions",
    "rewrite",
    "partition",
    "split_operations",
    "transform_record",
]
