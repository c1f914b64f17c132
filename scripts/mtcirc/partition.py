"""
Read Partitioner

Turns one record on the extended reference into one or two records on the
linear reference:

    Received -> Classified{NonSpanning | Spanning} -> [Rewritten | Split]

A non-spanning record only has its position linearised and its reference
renamed. A spanning record is cut at the seam into a left half (keeps the
read name and the linearised start) and a right half (named
``<name>_right``, starting at position 0).

Nothing is realigned at the seam. A seam inside a deletion or skip leaves the
right half starting with the rest of that run (``5D10M``), and a seam just
before a trailing deletion leaves a right half with no aligned bases at all
(``5D``, no sequence). Such halves are still written so the reference span is
conserved; halves without aligned bases are reported at WARNING.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from . import cigar
from .cigar import CigarOp
from .errors import MalformedCigarError, ReferenceMismatchError
from .geometry import ReferenceGeometry
from .mapper import Spanning, classify
from .records import AlignmentRecord
from .walker import SplitPoint, locate_split

logger = logging.getLogger(__name__)

RIGHT_SUFFIX = "_right"

# Tags describing the whole alignment; stale once it is cut in two
DERIVED_TAGS = ("NM", "MD", "AS", "cs", "ms")


@dataclass(frozen=True)
class SplitOptions:
    """How split halves are named and which tags they lose."""
    right_suffix: str = RIGHT_SUFFIX
    drop_tags: Tuple[str, ...] = DERIVED_TAGS


def _relabel_mate(record: AlignmentRecord, geometry: ReferenceGeometry) -> dict:
    if record.mate_reference_name != geometry.extended_name:
        return {}
    changes = {"mate_reference_name": geometry.target_name}
    if record.mate_position >= 0:
        changes["mate_position"] = geometry.to_linear(record.mate_position)
    return changes


def rewrite(record: AlignmentRecord, geometry: ReferenceGeometry) -> AlignmentRecord:
    """
    Move a non-spanning record onto the linear reference.

    Only the position (linearised) and reference name change; applying it to
    an already linear record leaves the position as it is.

    Examples:
        >>> geometry = ReferenceGeometry("chrM_ext", 16569)
        >>> rec = AlignmentRecord("r1", 0, "chrM_ext", 16600)
        >>> rewrite(rec, geometry).position
        31
    """
    position = record.position
    if position >= 0:
        position = geometry.to_linear(position)
    return record.replace(
        reference_name=geometry.target_name,
        position=position,
        **_relabel_mate(record, geometry),
    )


def split_operations(
    operations: Sequence[CigarOp],
    split: SplitPoint,
) -> Tuple[List[CigarOp], List[CigarOp]]:
    """
    Cut an operation list at a split point.

    The run holding the seam is divided between the halves; a zero-length
    piece is never emitted.

    Examples:
        >>> from mtcirc.cigar import parse_cigar, format_cigar
        >>> ops = parse_cigar("10S100M")
        >>> left, right = split_operations(ops, locate_split(ops, 60))
        >>> format_cigar(left), format_cigar(right)
        ('10S60M', '40M')
    """
    index = split.operation_index
    op = operations[index]

    left = list(operations[:index])
    right = []
    if split.ref_offset > 0:
        left.append(CigarOp(op.kind, split.ref_offset))
    right.append(CigarOp(op.kind, op.length - split.ref_offset))
    right.extend(operations[index + 1:])
    return left, right


def _check_query_length(record: AlignmentRecord) -> None:
    if record.sequence is None:
        return
    expected = record.query_length
    if len(record.sequence) != expected:
        raise MalformedCigarError(
            f"Read {record.name}: CIGAR {record.cigar_string} implies {expected} "
            f"query bases, sequence has {len(record.sequence)}"
        )
    if record.quality is not None and len(record.quality) != len(record.sequence):
        raise MalformedCigarError(
            f"Read {record.name}: {len(record.quality)} quality scores for "
            f"{len(record.sequence)} bases"
        )


def partition(
    record: AlignmentRecord,
    split: SplitPoint,
    geometry: ReferenceGeometry,
    options: SplitOptions = SplitOptions(),
) -> Tuple[AlignmentRecord, AlignmentRecord]:
    """
    Split a spanning record into left and right halves at ``split``.

    Sequence and qualities are cut after ``split.query_consumed`` bases in
    stored (reference-forward) orientation, so strand never matters here.
    Flags, MAPQ and tags are inherited, except ``options.drop_tags``.

    Args:
        record: Spanning record on the extended reference
        split: Split point from ``locate_split``
        geometry: Reference geometry
        options: Naming and tag policy

    Returns:
        (left_record, right_record)

    Raises:
        MalformedCigarError: If the halves do not conserve bases
        ReferenceMismatchError: If the right half is longer than the reference
    """
    _check_query_length(record)

    left_ops, right_ops = split_operations(record.operations, split)
    right_span = cigar.reference_length(right_ops)
    if right_span > geometry.linear_length:
        raise ReferenceMismatchError(
            f"Read {record.name}: alignment of {record.reference_span} reference bases "
            f"wraps past the {geometry.linear_length} bp reference more than once"
        )

    cut = split.query_consumed
    left_seq = right_seq = None
    if record.sequence is not None:
        left_seq, right_seq = record.sequence[:cut], record.sequence[cut:]
    left_qual = right_qual = None
    if record.quality is not None:
        left_qual, right_qual = list(record.quality[:cut]), list(record.quality[cut:])

    tags = {k: v for k, v in record.tags.items() if k not in options.drop_tags}
    tag_types = {k: v for k, v in record.tag_types.items() if k in tags}
    mate = _relabel_mate(record, geometry)

    left = record.replace(
        reference_name=geometry.target_name,
        position=geometry.to_linear(record.position),
        operations=left_ops,
        sequence=left_seq,
        quality=left_qual,
        tags=tags,
        tag_types=tag_types,
        **mate,
    )
    right = record.replace(
        name=record.name + options.right_suffix,
        reference_name=geometry.target_name,
        position=0,
        operations=right_ops,
        sequence=right_seq,
        quality=right_qual,
        tags=dict(tags),
        tag_types=dict(tag_types),
        **mate,
    )

    # Conservation across the halves
    if cigar.reference_length(left_ops) + right_span != record.reference_span:
        raise MalformedCigarError(
            f"Read {record.name}: reference length not conserved across split"
        )
    if record.sequence is not None and len(left_seq) + len(right_seq) != len(record.sequence):
        raise MalformedCigarError(
            f"Read {record.name}: sequence length not conserved across split"
        )

    for half in (left, right):
        if not any(op.kind.consumes_reference and op.kind.consumes_query
                   for op in half.operations):
            logger.warning(
                f"Split {record.name}: {half.name} has no aligned bases "
                f"({half.cigar_string})"
            )

    logger.debug(
        f"Split {record.name}: {record.cigar_string}@{record.position} -> "
        f"{left.cigar_string}@{left.position} + {right.cigar_string}@{right.position}"
    )
    return left, right


def transform_record(
    record: AlignmentRecord,
    geometry: ReferenceGeometry,
    options: SplitOptions = SplitOptions(),
) -> List[AlignmentRecord]:
    """
    Transform one input record into the records to emit, in output order.

    Records on other references (or unplaced) come back unchanged apart from
    mate fields pointing at the extended reference; records on the extended
    reference come back rewritten, or as [left, right] when they cross the seam.
    """
    if record.reference_name != geometry.extended_name:
        # A mate on the extended reference still needs its start wrapped
        mate = _relabel_mate(record, geometry)
        return [record.replace(**mate) if mate else record]

    classification = classify(record, geometry)
    if not isinstance(classification, Spanning):
        if geometry.is_wrapped(record.position):
            logger.debug(
                f"Read {record.name} starts at {record.position}, beyond the "
                f"{geometry.linear_length} bp reference; wrapping"
            )
        return [rewrite(record, geometry)]

    split = locate_split(record.operations, classification.boundary_offset)
    return list(partition(record, split, geometry, options))
