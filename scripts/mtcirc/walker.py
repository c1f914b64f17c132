"""
Alignment Operation Walker

Walks a CIGAR jointly along the reference and the query to find where the
seam falls inside the alignment.

Worked example (boundary 90 reference bases after the alignment start):

    Operation  Query after  Reference after
    S20        20           0
    M30        50           30
    D5         50           35
    N5         50           40
    M90        140          130   <- seam inside this run, 50 bases in
    S10        150          130

    SplitPoint(operation_index=4, ref_offset=50, query_offset=50,
               query_consumed=100)

Operations that consume no reference (I, S, H, P) never contain the seam.
When the seam lies exactly between two runs, any such operations sitting on
the seam stay with the left half, and the split point is the start of the
next reference-consuming run, so neither half gets a zero-length run.
"""

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from .cigar import CigarOp
from .errors import MalformedCigarError


@dataclass(frozen=True)
class SplitPoint:
    """Where the seam falls within an operation list."""
    operation_index: int
    ref_offset: int      # reference bases of the split run left of the seam
    query_offset: int    # query bases of the split run left of the seam
    query_consumed: int  # query bases left of the seam in total


def walk(operations: Sequence[CigarOp]) -> Iterator[Tuple[int, CigarOp, int, int]]:
    """
    Yield (index, op, reference consumed before op, query consumed before op).

    Examples:
        >>> from mtcirc.cigar import parse_cigar
        >>> [(i, r, q) for i, _, r, q in walk(parse_cigar("5S10M2I3M"))]
        [(0, 0, 0), (1, 0, 5), (2, 10, 15), (3, 10, 17)]
    """
    ref_consumed = 0
    query_consumed = 0
    for index, op in enumerate(operations):
        yield index, op, ref_consumed, query_consumed
        ref_consumed += op.reference_length
        query_consumed += op.query_length


def locate_split(operations: Sequence[CigarOp], boundary_offset: int) -> SplitPoint:
    """
    Find the run in which the reference crosses ``boundary_offset``.

    Args:
        operations: CIGAR runs in reference-forward order
        boundary_offset: Reference bases consumed before the seam (> 0)

    Returns:
        SplitPoint of the first reference-consuming run that would take the
        reference total past ``boundary_offset``

    Raises:
        MalformedCigarError: If the CIGAR never consumes that much reference
    """
    if boundary_offset <= 0:
        raise ValueError(f"boundary_offset must be > 0, got {boundary_offset}")

    for index, op, ref_consumed, query_consumed in walk(operations):
        if op.kind.consumes_reference and ref_consumed + op.length > boundary_offset:
            ref_offset = boundary_offset - ref_consumed
            query_offset = ref_offset if op.kind.consumes_query else 0
            return SplitPoint(
                operation_index=index,
                ref_offset=ref_offset,
                query_offset=query_offset,
                query_consumed=query_consumed + query_offset,
            )

    total = sum(op.reference_length for op in operations)
    raise MalformedCigarError(
        f"CIGAR consumes {total} reference bases, never passing the boundary "
        f"at offset {boundary_offset}"
    )
