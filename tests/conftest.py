"""
Pytest configuration and fixtures for mtcirc tests.
"""

import sys
import tempfile
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from mtcirc.cigar import parse_cigar
from mtcirc.geometry import ReferenceGeometry
from mtcirc.records import AlignmentRecord


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Reference Fixtures
# ============================================================================

@pytest.fixture
def mt_length():
    """Human mitochondrial genome length (rCRS)."""
    return 16569


@pytest.fixture
def geometry(mt_length):
    """Doubled chrM reference mapped back to chrM."""
    return ReferenceGeometry("chrM_doubled", mt_length, "chrM")


@pytest.fixture
def small_geometry():
    """Small 1000 bp circular reference, convenient for hand-checked CIGARs."""
    return ReferenceGeometry("sq0", 1000, "chrM")


# ============================================================================
# Record Fixtures
# ============================================================================

def _make_record(name="read1", position=0, cigar="10M", reference_name="chrM_doubled",
                 flags=0, sequence=None, quality=None, tags=None, **kwargs):
    ops = parse_cigar(cigar)
    query_len = sum(op.query_length for op in ops)
    if sequence is None:
        sequence = ("ACGT" * (query_len // 4 + 1))[:query_len]
    if quality is None:
        quality = [i % 41 for i in range(len(sequence))]
    mapping_quality = kwargs.pop("mapping_quality", 60)
    return AlignmentRecord(
        name=name,
        flags=flags,
        reference_name=reference_name,
        position=position,
        mapping_quality=mapping_quality,
        operations=ops,
        sequence=sequence,
        quality=quality,
        tags=dict(tags or {}),
        **kwargs,
    )


@pytest.fixture
def make_record():
    """Factory fixture building AlignmentRecords from a CIGAR string."""
    return _make_record


@pytest.fixture
def split_fixture_sequence():
    """150 bp read with an 'N' at (1-based) base 101."""
    return "ACGT" * 25 + "N" + ("ACGT" * 13)[:49]


@pytest.fixture
def split_fixture_quality():
    """Phred+33 string for the 150 bp fixture read, '!' at base 101."""
    qual = (
        "0123456789:;<=>?@ABCDEFGHI0123456789:;<=>?@ABCDEFGHI"
        "0123456789:;<=>?@ABCDEFGHI0123456789:;<=>?@ABCDE!FGHI"
        "0123456789:;<=>?@ABCDEFGHI0123456789:;<=>?@AB"
    )
    return [ord(c) - 33 for c in qual]


# ============================================================================
# SAM Fixtures
# ============================================================================

@pytest.fixture
def write_sam(temp_dir):
    """Factory fixture writing a SAM file from header lines and records."""
    def _write_sam(records, sq=(("chrM_doubled", 33138), ("chr1", 248956422)),
                   name="input.sam", extra_header=()):
        lines = ["@HD\tVN:1.6\tSO:unsorted"]
        for sn, ln in sq:
            lines.append(f"@SQ\tSN:{sn}\tLN:{ln}")
        lines.extend(extra_header)
        lines.extend(records)
        sam_path = temp_dir / name
        sam_path.write_text("\n".join(lines) + "\n")
        return sam_path
    return _write_sam
