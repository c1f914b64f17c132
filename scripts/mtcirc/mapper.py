"""
Coordinate Mapper

Decides from arithmetic alone whether an alignment on the extended reference
runs across the seam. The CIGAR is only summed here, never walked, so
non-spanning records (the vast majority) skip the walker entirely.

For an alignment starting at p and consuming L reference bases:

    crosses_boundary  <=>  p % linear_length + L > linear_length
    boundary_offset    =   linear_length - p % linear_length
"""

from dataclasses import dataclass
from typing import Union

from .geometry import ReferenceGeometry
from .records import AlignmentRecord


@dataclass(frozen=True)
class NonSpanning:
    """Alignment fits within one copy of the linear reference."""
    reference_start: int
    reference_end: int
    crosses_boundary = False
    boundary_offset = None


@dataclass(frozen=True)
class Spanning:
    """Alignment crosses the seam after ``boundary_offset`` reference bases."""
    reference_start: int
    reference_end: int
    boundary_offset: int
    crosses_boundary = True


Classification = Union[NonSpanning, Spanning]


def crosses_boundary(position: int, span: int, linear_length: int) -> bool:
    """
    True if ``span`` reference bases starting at ``position`` pass the seam.

    Examples:
        >>> crosses_boundary(16500, 200, 16569)
        True
        >>> crosses_boundary(16500, 69, 16569)
        False
    """
    return position % linear_length + span > linear_length


def classify(record: AlignmentRecord, geometry: ReferenceGeometry) -> Classification:
    """
    Classify a record on the extended reference.

    Args:
        record: Alignment on ``geometry.extended_name``
        geometry: Reference geometry

    Returns:
        NonSpanning, or Spanning carrying the offset of the seam from the start

    Examples:
        >>> from mtcirc.cigar import parse_cigar
        >>> geometry = ReferenceGeometry("chrM_ext", 16569)
        >>> rec = AlignmentRecord("r1", 0, "chrM_ext", 16500,
        ...                       operations=parse_cigar("200M"))
        >>> classify(rec, geometry).boundary_offset
        69
    """
    start = record.position
    if record.is_unmapped or start < 0:
        return NonSpanning(start, start)

    span = record.reference_span
    end = start + span
    if not crosses_boundary(start, span, geometry.linear_length):
        return NonSpanning(start, end)

    return Spanning(start, end, geometry.linear_length - geometry.to_linear(start))
