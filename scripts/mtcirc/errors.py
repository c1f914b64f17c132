"""
Error types raised while converting alignments back to the linear reference.

Every error here is fatal for the run: the converter never skips a record it
cannot handle, because a length mismatch would silently corrupt all output.
"""


class LinToCircError(ValueError):
    """Base class for all conversion errors."""


class ConfigurationError(LinToCircError):
    """Invalid reference length, missing reference name or bad settings."""


class MalformedCigarError(LinToCircError):
    """CIGAR inconsistent with the computed boundary or the stored sequence."""


class ReferenceMismatchError(LinToCircError):
    """Declared reference length disagrees with the configured linear length."""
