"""
Tests for locating the seam inside a CIGAR.
"""

import pytest

from mtcirc.cigar import CigarKind, parse_cigar
from mtcirc.errors import MalformedCigarError
from mtcirc.walker import SplitPoint, locate_split, walk


# ============================================================================
# Tests: Walk
# ============================================================================

class TestWalk:
    """Tests for the joint reference/query traversal."""

    def test_offsets(self):
        steps = [(i, r, q) for i, _, r, q in walk(parse_cigar("5S10M2I3M"))]
        assert steps == [(0, 0, 0), (1, 0, 5), (2, 10, 15), (3, 10, 17)]

    def test_empty(self):
        assert list(walk([])) == []


# ============================================================================
# Tests: Locate Split
# ============================================================================

class TestLocateSplit:
    """Tests for locate_split."""

    def test_single_match(self):
        """200M with the seam 69 bases in."""
        split = locate_split(parse_cigar("200M"), 69)
        assert split == SplitPoint(operation_index=0, ref_offset=69,
                                   query_offset=69, query_consumed=69)

    def test_original_fixture(self):
        """S20 M30 D5 N5 M90 S10 with the seam 90 reference bases in."""
        split = locate_split(parse_cigar("20S30M5D5N90M10S"), 90)
        assert split.operation_index == 4
        assert split.ref_offset == 50
        assert split.query_offset == 50
        assert split.query_consumed == 100

    def test_inside_deletion(self):
        """Seam inside a deletion consumes no query bases there."""
        split = locate_split(parse_cigar("10M10D10M"), 15)
        assert split.operation_index == 1
        assert split.ref_offset == 5
        assert split.query_offset == 0
        assert split.query_consumed == 10

    def test_inside_skip(self):
        split = locate_split(parse_cigar("10M100N10M"), 60)
        assert split.operation_index == 1
        assert split.ref_offset == 50
        assert split.query_consumed == 10

    def test_exact_operation_boundary(self):
        """Seam between runs: split at the start of the next run."""
        split = locate_split(parse_cigar("50M50M"), 50)
        assert split.operation_index == 1
        assert split.ref_offset == 0
        assert split.query_consumed == 50

    def test_insertion_at_seam_goes_left(self):
        """Insertion right on the seam stays with the left half."""
        split = locate_split(parse_cigar("50M5I50M"), 50)
        assert split.operation_index == 2
        assert split.ref_offset == 0
        assert split.query_consumed == 55

    def test_insertion_after_seam_goes_right(self):
        split = locate_split(parse_cigar("60M5I40M"), 50)
        assert split.operation_index == 0
        assert split.ref_offset == 50
        assert split.query_consumed == 50

    def test_sequence_match_mismatch(self):
        split = locate_split(parse_cigar("10=1X9="), 10)
        assert split.operation_index == 1
        assert split.ref_offset == 0
        assert split.query_consumed == 10

    def test_hard_clip_leading(self):
        split = locate_split(parse_cigar("30H20M"), 5)
        assert split.operation_index == 1
        assert split.query_consumed == 5

    def test_never_reaches_boundary(self):
        with pytest.raises(MalformedCigarError):
            locate_split(parse_cigar("10S40M10S"), 40)

    def test_empty_cigar(self):
        with pytest.raises(MalformedCigarError):
            locate_split([], 1)

    @pytest.mark.parametrize("offset", [0, -5])
    def test_invalid_offset(self, offset):
        with pytest.raises(ValueError):
            locate_split(parse_cigar("100M"), offset)

    def test_split_run_consumes_reference(self):
        """The run holding the seam always consumes reference."""
        ops = parse_cigar("3S4M2I3D1N5M4S")
        total = sum(op.reference_length for op in ops)
        for offset in range(1, total):
            split = locate_split(ops, offset)
            op = ops[split.operation_index]
            assert op.kind.consumes_reference
            assert 0 <= split.ref_offset < op.length
            assert op.kind is not CigarKind.INSERTION
