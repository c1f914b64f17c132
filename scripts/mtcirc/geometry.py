"""
Reference Geometry for Circular Genomes

Reads from a circular molecule (e.g. mtDNA) are aligned against an extended
reference: the linear sequence followed by a duplicated copy of (part of)
itself, so that reads crossing the natural origin align contiguously.

Mathematical Background:
------------------------
With a linear length L, every 0-based position p on the extended reference
corresponds to a position on the linear reference:

    linear_pos = p % L

    p = 0        corresponds to  linear_pos = 0
    p = L - 1    corresponds to  linear_pos = L - 1
    p = L        corresponds to  linear_pos = 0   (the seam)
    p = L + 100  corresponds to  linear_pos = 100

The seam is the extended-reference coordinate L, where the first copy of the
linear sequence ends.
"""

from dataclasses import dataclass
from typing import Any, Dict

from utils.config_parser import get_nested

from .errors import ConfigurationError

# Human mitochondrial genome constants (rCRS)
MT_GENOME_LENGTH: int = 16569
MT_TARGET_NAME: str = "chrM"


@dataclass(frozen=True)
class ReferenceGeometry:
    """Immutable description of the extended and linear references."""
    extended_name: str
    linear_length: int = MT_GENOME_LENGTH
    target_name: str = MT_TARGET_NAME

    def __post_init__(self):
        if isinstance(self.linear_length, bool) or not isinstance(self.linear_length, int):
            raise ConfigurationError(
                f"Linear reference length must be an integer, got {self.linear_length!r}"
            )
        if self.linear_length <= 0:
            raise ConfigurationError(
                f"Linear reference length must be > 0, got {self.linear_length}"
            )
        if not self.extended_name:
            raise ConfigurationError("Extended reference name is required")
        if not self.target_name:
            raise ConfigurationError("Target reference name is required")

    def to_linear(self, extended_pos: int) -> int:
        """
        Convert a 0-based extended-reference position to the linear reference.

        Args:
            extended_pos: Position on the extended reference (0-based)

        Returns:
            Position on the linear reference, always in [0, linear_length)

        Examples:
            >>> geometry = ReferenceGeometry("chrM_ext", 16569)
            >>> geometry.to_linear(100)
            100
            >>> geometry.to_linear(16569)
            0
            >>> geometry.to_linear(16600)
            31
        """
        return extended_pos % self.linear_length

    def is_wrapped(self, extended_pos: int) -> bool:
        """True when the position lies in the duplicated tail (at or past the seam)."""
        return extended_pos >= self.linear_length

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ReferenceGeometry":
        """
        Build geometry from a loaded configuration mapping.

        Reads ``reference.name``, ``reference.length`` and ``reference.target``.

        Raises:
            ConfigurationError: If the name is missing or the length is invalid
        """
        length = get_nested(config, "reference.length", MT_GENOME_LENGTH)
        try:
            length = int(length)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"reference.length must be an integer, got {length!r}"
            ) from None

        return cls(
            extended_name=get_nested(config, "reference.name", "") or "",
            linear_length=length,
            target_name=get_nested(config, "reference.target", MT_TARGET_NAME) or "",
        )
