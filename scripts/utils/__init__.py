# mtcirc Utilities
"""Common utilities for the mtcirc converter."""

from .config_parser import load_config, get_nested, validate_config

__all__ = ["load_config", "get_nested", "validate_config"]
