"""
SAM/BAM adapter for the converter.

Reads alignments with pysam, rewrites the header so the extended reference
becomes the linear target, pushes every record through ``transform_record``
and writes the results in input order (left half before right half).

Output goes to ``<path>.partial`` and is renamed only once the whole file has
been converted; any error removes the partial file.
"""

import array
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import pysam

from . import cigar
from .errors import ConfigurationError, ReferenceMismatchError
from .geometry import ReferenceGeometry
from .partition import SplitOptions, transform_record
from .records import AlignmentRecord

logger = logging.getLogger(__name__)

PROGRAM_ID = "mtcirc"
PARTIAL_SUFFIX = ".partial"


# ============================================================================
# Record conversion
# ============================================================================

def record_from_segment(segment: pysam.AlignedSegment) -> AlignmentRecord:
    """Copy a pysam segment into an AlignmentRecord."""
    tags = {}
    tag_types = {}
    for tag, value, value_type in segment.get_tags(with_value_type=True):
        tags[tag] = value
        tag_types[tag] = value_type

    qualities = segment.query_qualities
    return AlignmentRecord(
        name=segment.query_name,
        flags=segment.flag,
        reference_name=segment.reference_name,
        position=segment.reference_start,
        mapping_quality=segment.mapping_quality,
        operations=cigar.from_pysam(segment.cigartuples),
        sequence=segment.query_sequence,
        quality=list(qualities) if qualities is not None else None,
        tags=tags,
        tag_types=tag_types,
        mate_reference_name=segment.next_reference_name,
        mate_position=segment.next_reference_start,
        template_length=segment.template_length,
    )


def reference_ids(
    header: pysam.AlignmentHeader,
    geometry: Optional[ReferenceGeometry] = None,
) -> Dict[str, int]:
    """
    Map reference names to ids in ``header``.

    With ``geometry``, the extended name maps to the target's id, so mate
    fields of foreign records that point at the extended reference stay valid.
    """
    ids = {name: tid for tid, name in enumerate(header.references)}
    if geometry is not None and geometry.target_name in ids:
        ids.setdefault(geometry.extended_name, ids[geometry.target_name])
    return ids


def _reference_id(ids: Dict[str, int], name: Optional[str]) -> int:
    if name is None:
        return -1
    try:
        return ids[name]
    except KeyError:
        raise ConfigurationError(f"Reference {name} not present in output header") from None


def _tag_items(record: AlignmentRecord) -> List[Tuple[Any, ...]]:
    items = []
    for tag, value in record.tags.items():
        value_type = record.tag_types.get(tag)
        # Array subtypes are inferred from the array typecode
        if value_type and value_type != "B" and not isinstance(value, array.array):
            items.append((tag, value, value_type))
        else:
            items.append((tag, value))
    return items


def segment_from_record(
    record: AlignmentRecord,
    header: pysam.AlignmentHeader,
    ids: Optional[Dict[str, int]] = None,
) -> pysam.AlignedSegment:
    """Build a pysam segment for ``record`` against ``header``."""
    if ids is None:
        ids = reference_ids(header)
    segment = pysam.AlignedSegment(header)
    segment.query_name = record.name
    segment.flag = record.flags
    segment.reference_id = _reference_id(ids, record.reference_name)
    segment.reference_start = record.position
    segment.mapping_quality = record.mapping_quality
    if record.operations:
        segment.cigartuples = cigar.to_pysam(record.operations)
    segment.query_sequence = record.sequence
    # Qualities must be set after the sequence, which resets them
    if record.quality is not None:
        segment.query_qualities = array.array("B", record.quality)
    segment.next_reference_id = _reference_id(ids, record.mate_reference_name)
    segment.next_reference_start = record.mate_position
    segment.template_length = record.template_length
    segment.set_tags(_tag_items(record))
    return segment


# ============================================================================
# Header
# ============================================================================

def rewrite_header(
    header: Dict[str, Any],
    geometry: ReferenceGeometry,
    length_tolerance: int = 0,
    program: Optional[Dict[str, str]] = None,
) -> Tuple[Dict[str, Any], int]:
    """
    Replace the extended reference's @SQ line with the linear target.

    The target takes the extended reference's slot, so reference ids of all
    other sequences are unchanged.

    Args:
        header: Header as returned by ``AlignmentHeader.to_dict()``
        geometry: Reference geometry
        length_tolerance: Allowed disagreement of the declared length
        program: Optional @PG fields (ID/PN/VN/CL) to append

    Returns:
        (new header dict, declared length of the extended reference)

    Raises:
        ConfigurationError: If the extended reference is missing, or the
            target name already names another sequence
        ReferenceMismatchError: If the declared length cannot be an extension
            of a ``linear_length`` molecule
    """
    sequences = [dict(sq) for sq in header.get("SQ", [])]
    names = [sq["SN"] for sq in sequences]

    if geometry.extended_name not in names:
        raise ConfigurationError(
            f"Reference {geometry.extended_name} not found in alignment header "
            f"(available: {', '.join(names) or 'none'})"
        )
    if geometry.target_name != geometry.extended_name and geometry.target_name in names:
        raise ConfigurationError(
            f"Target reference {geometry.target_name} already present in alignment header"
        )

    index = names.index(geometry.extended_name)
    extended_length = int(sequences[index]["LN"])
    low = geometry.linear_length - length_tolerance
    high = 2 * geometry.linear_length + length_tolerance
    if not low <= extended_length <= high:
        raise ReferenceMismatchError(
            f"Reference {geometry.extended_name} has length {extended_length}, "
            f"expected between {low} and {high} for a {geometry.linear_length} bp "
            f"linear reference"
        )

    sequences[index] = {"SN": geometry.target_name, "LN": geometry.linear_length}

    new_header = {key: value for key, value in header.items() if key != "SQ"}
    new_header["SQ"] = sequences

    if program:
        programs = [dict(pg) for pg in header.get("PG", [])]
        entry = dict(program)
        taken = {pg.get("ID") for pg in programs}
        base_id = entry.get("ID", PROGRAM_ID)
        entry_id, n = base_id, 0
        while entry_id in taken:
            n += 1
            entry_id = f"{base_id}.{n}"
        entry["ID"] = entry_id
        if programs and programs[-1].get("ID"):
            entry["PP"] = programs[-1]["ID"]
        programs.append(entry)
        new_header["PG"] = programs

    return new_header, extended_length


# ============================================================================
# Statistics
# ============================================================================

@dataclass
class ConversionStats:
    """Per-run record counts."""
    total: int = 0
    foreign: int = 0
    unplaced: int = 0
    unmapped: int = 0
    rewritten: int = 0
    split: int = 0
    wrapped_start: int = 0
    written: int = 0

    def as_rows(self) -> List[Tuple[str, int]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


def write_summary(stats: ConversionStats, summary_path: str) -> None:
    """Write run counts as a two-column TSV (metric, count)."""
    df = pd.DataFrame(stats.as_rows(), columns=["metric", "count"])
    df.to_csv(summary_path, sep="\t", index=False)
    logger.info(f"Summary saved to: {summary_path}")


def _count(stats: ConversionStats, record: AlignmentRecord, emitted: List[AlignmentRecord],
           geometry: ReferenceGeometry) -> None:
    stats.total += 1
    stats.written += len(emitted)
    if record.reference_name is None:
        stats.unplaced += 1
    elif record.reference_name != geometry.extended_name:
        stats.foreign += 1
    else:
        if record.is_unmapped:
            stats.unmapped += 1
        if len(emitted) == 2:
            stats.split += 1
        else:
            stats.rewritten += 1
        if geometry.is_wrapped(record.position):
            stats.wrapped_start += 1


# ============================================================================
# Driver
# ============================================================================

def _output_mode(output_path: Optional[str]) -> str:
    if output_path and output_path != "-" and output_path.endswith(".bam"):
        return "wb"
    return "w"


def convert_alignment_file(
    input_path: str,
    geometry: ReferenceGeometry,
    output_path: Optional[str] = None,
    options: SplitOptions = SplitOptions(),
    length_tolerance: int = 0,
    force: bool = False,
    program: Optional[Dict[str, str]] = None,
) -> ConversionStats:
    """
    Convert an alignment file from the extended to the linear reference.

    Args:
        input_path: SAM or BAM file aligned to the extended reference
        geometry: Reference geometry
        output_path: Output file ('.bam' gives BAM, anything else SAM);
            None or '-' writes SAM to stdout
        options: Split naming and tag policy
        length_tolerance: Allowed disagreement of declared reference lengths
        force: Overwrite an existing output file
        program: Optional @PG fields to record in the output header

    Returns:
        ConversionStats for the run

    Raises:
        ConfigurationError, MalformedCigarError, ReferenceMismatchError:
            Fatal; nothing is left at ``output_path``
    """
    to_stdout = output_path is None or output_path == "-"
    if not to_stdout and os.path.exists(output_path) and not force:
        raise ConfigurationError(
            f"Output file already exists: {output_path} (use --force to overwrite)"
        )
    if length_tolerance < 0:
        raise ConfigurationError(f"Length tolerance must be >= 0, got {length_tolerance}")

    stats = ConversionStats()
    write_path = "-" if to_stdout else output_path + PARTIAL_SUFFIX
    completed = False

    try:
        with pysam.AlignmentFile(input_path, "r", check_sq=False) as infile:
            header_dict, extended_length = rewrite_header(
                infile.header.to_dict(), geometry, length_tolerance, program
            )
            header = pysam.AlignmentHeader.from_dict(header_dict)
            ids = reference_ids(header, geometry)
            logger.info(
                f"Header: {geometry.extended_name} (LN:{extended_length}) -> "
                f"{geometry.target_name} (LN:{geometry.linear_length})"
            )

            with pysam.AlignmentFile(write_path, _output_mode(output_path), header=header) as outfile:
                for segment in infile:
                    record = record_from_segment(segment)
                    if (record.reference_name == geometry.extended_name
                            and not record.is_unmapped
                            and record.reference_end > extended_length + length_tolerance):
                        raise ReferenceMismatchError(
                            f"Read {record.name}: alignment ends at {record.reference_end}, "
                            f"past the {extended_length} bp length of {geometry.extended_name}"
                        )

                    emitted = transform_record(record, geometry, options)
                    for out in emitted:
                        outfile.write(segment_from_record(out, header, ids))
                    _count(stats, record, emitted, geometry)
        completed = True
    finally:
        if not to_stdout:
            if completed:
                os.replace(write_path, output_path)
            elif os.path.exists(write_path):
                os.remove(write_path)

    if stats.wrapped_start:
        logger.warning(
            f"{stats.wrapped_start} records start beyond {geometry.linear_length} "
            f"on {geometry.extended_name}; their starts were wrapped"
        )
    logger.info(
        f"Processed {stats.total} records: {stats.split} split, {stats.rewritten} rewritten, "
        f"{stats.foreign} on other references, {stats.unplaced} unplaced; "
        f"{stats.written} written"
    )
    return stats
