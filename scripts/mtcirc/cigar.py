"""
CIGAR Operations

An alignment's shape is an ordered list of (kind, length) operations. Each
kind consumes the reference, the query, both or neither:

    Op  Code  Reference  Query
    M   0     yes        yes
    I   1     no         yes
    D   2     yes        no
    N   3     yes        no
    S   4     no         yes
    H   5     no         no
    P   6     no         no
    =   7     yes        yes
    X   8     yes        yes

Codes are the ones pysam uses in ``AlignedSegment.cigartuples``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .errors import MalformedCigarError

_CIGAR_RE = re.compile(r'(\d+)([MIDNSHP=X])')


class CigarKind(Enum):
    """Closed set of CIGAR operation kinds with their consumption flags."""
    MATCH = ("M", 0, True, True)
    INSERTION = ("I", 1, False, True)
    DELETION = ("D", 2, True, False)
    SKIP = ("N", 3, True, False)
    SOFT_CLIP = ("S", 4, False, True)
    HARD_CLIP = ("H", 5, False, False)
    PAD = ("P", 6, False, False)
    SEQUENCE_MATCH = ("=", 7, True, True)
    SEQUENCE_MISMATCH = ("X", 8, True, True)

    def __init__(self, symbol: str, code: int, consumes_reference: bool, consumes_query: bool):
        self.symbol = symbol
        self.code = code
        self.consumes_reference = consumes_reference
        self.consumes_query = consumes_query

    @classmethod
    def from_symbol(cls, symbol: str) -> "CigarKind":
        try:
            return _BY_SYMBOL[symbol]
        except KeyError:
            raise MalformedCigarError(f"Unknown CIGAR operation: {symbol!r}") from None

    @classmethod
    def from_code(cls, code: int) -> "CigarKind":
        try:
            return _BY_CODE[code]
        except KeyError:
            raise MalformedCigarError(f"Unknown CIGAR operation code: {code}") from None


_BY_SYMBOL = {kind.symbol: kind for kind in CigarKind}
_BY_CODE = {kind.code: kind for kind in CigarKind}


@dataclass(frozen=True)
class CigarOp:
    """One CIGAR run."""
    kind: CigarKind
    length: int

    def __post_init__(self):
        if self.length <= 0:
            raise MalformedCigarError(
                f"CIGAR operation {self.kind.symbol} must have length > 0, got {self.length}"
            )

    @property
    def reference_length(self) -> int:
        """Reference bases consumed by this run."""
        return self.length if self.kind.consumes_reference else 0

    @property
    def query_length(self) -> int:
        """Query bases consumed by this run."""
        return self.length if self.kind.consumes_query else 0

    def __str__(self) -> str:
        return f"{self.length}{self.kind.symbol}"


def parse_cigar(cigar_string: str) -> List[CigarOp]:
    """
    Parse a CIGAR string into operations.

    Args:
        cigar_string: CIGAR string, '*' or empty for no alignment

    Returns:
        List of CigarOp (empty for '*')

    Raises:
        MalformedCigarError: If the string contains anything but CIGAR runs

    Examples:
        >>> [str(op) for op in parse_cigar("20S30M5D")]
        ['20S', '30M', '5D']
    """
    if not cigar_string or cigar_string == "*":
        return []

    ops = []
    consumed = 0
    for match in _CIGAR_RE.finditer(cigar_string):
        if match.start() != consumed:
            break
        ops.append(CigarOp(CigarKind.from_symbol(match.group(2)), int(match.group(1))))
        consumed = match.end()

    if consumed != len(cigar_string):
        raise MalformedCigarError(f"Invalid CIGAR string: {cigar_string!r}")
    return ops


def format_cigar(ops: Iterable[CigarOp]) -> str:
    """Format operations as a CIGAR string ('*' when empty)."""
    text = "".join(str(op) for op in ops)
    return text or "*"


def reference_length(ops: Iterable[CigarOp]) -> int:
    """Total reference bases consumed."""
    return sum(op.reference_length for op in ops)


def query_length(ops: Iterable[CigarOp]) -> int:
    """Total query bases consumed (the stored sequence length)."""
    return sum(op.query_length for op in ops)


def from_pysam(cigartuples: Optional[List[Tuple[int, int]]]) -> List[CigarOp]:
    """Convert pysam's list[(code, len)] to CigarOp list; None gives []."""
    if not cigartuples:
        return []
    return [CigarOp(CigarKind.from_code(code), length) for code, length in cigartuples]


def to_pysam(ops: Iterable[CigarOp]) -> List[Tuple[int, int]]:
    """Convert CigarOp list back to pysam's list[(code, len)]."""
    return [(op.kind.code, op.length) for op in ops]
