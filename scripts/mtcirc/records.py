"""
Alignment record model, independent of any container format.

Positions are 0-based. ``operations`` are always in reference-forward order;
for reverse-strand reads ``sequence`` and ``quality`` are stored in the same
reference-forward orientation (as in SAM/BAM), so slicing them never needs a
strand check.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import cigar
from .cigar import CigarOp

# SAM flag bits
FLAG_UNMAPPED = 0x4
FLAG_REVERSE = 0x10


@dataclass
class AlignmentRecord:
    """One alignment as read from (and written back to) the container."""
    name: str
    flags: int
    reference_name: Optional[str]
    position: int  # 0-based, -1 when unplaced
    mapping_quality: int = 255
    operations: List[CigarOp] = field(default_factory=list)
    sequence: Optional[str] = None
    quality: Optional[List[int]] = None
    tags: Dict[str, Any] = field(default_factory=dict)
    tag_types: Dict[str, str] = field(default_factory=dict)
    mate_reference_name: Optional[str] = None
    mate_position: int = -1
    template_length: int = 0

    @property
    def is_unmapped(self) -> bool:
        return bool(self.flags & FLAG_UNMAPPED)

    @property
    def is_reverse(self) -> bool:
        return bool(self.flags & FLAG_REVERSE)

    @property
    def reference_span(self) -> int:
        """Reference bases consumed by the alignment."""
        return cigar.reference_length(self.operations)

    @property
    def reference_end(self) -> int:
        """Exclusive end of the alignment on the reference."""
        return self.position + self.reference_span

    @property
    def query_length(self) -> int:
        """Query bases implied by the CIGAR."""
        return cigar.query_length(self.operations)

    @property
    def cigar_string(self) -> str:
        return cigar.format_cigar(self.operations)

    def replace(self, **changes) -> "AlignmentRecord":
        """Return a copy with ``changes`` applied; tags are copied, not shared."""
        changes.setdefault("tags", dict(self.tags))
        changes.setdefault("tag_types", dict(self.tag_types))
        return dataclasses.replace(self, **changes)
