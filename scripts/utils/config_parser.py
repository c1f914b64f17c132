#!/usr/bin/env python3
"""
mtcirc Configuration Parser

Parses YAML configuration files holding the reference settings for the
linear-to-circular converter. Values given on the converter's command line
override the file.

Example config:

    reference:
      name: chrM_doubled     # extended reference as named in the BAM header
      length: 16569          # linear reference length
      target: chrM           # output reference name
      length_tolerance: 0
    split:
      right_suffix: _right
      drop_tags: [NM, MD, AS, cs, ms]

Usage:
    # Get single value
    python config_parser.py config.yaml --get reference.length

    # Validate configuration
    python config_parser.py config.yaml --validate

    # As Python module
    from utils.config_parser import load_config, get_nested
    config = load_config("config.yaml")
    reflen = get_nested(config, "reference.length")
"""

import argparse
import json
import re
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

_TAG_RE = re.compile(r'^[A-Za-z][A-Za-z0-9]$')


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}

    return config


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path (e.g., "reference.length")
        default: Default value if key not found

    Returns:
        Value at the specified path, or default if not found

    Examples:
        >>> config = {"reference": {"length": 16569}}
        >>> get_nested(config, "reference.length")
        16569
        >>> get_nested(config, "reference.missing", "default")
        'default'
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration values.

    The reference name is not required here, it may come from the command line.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    if not isinstance(config, dict):
        return False, [f"Configuration must be a mapping, got {type(config).__name__}"]

    name = get_nested(config, "reference.name")
    if name is not None and (not isinstance(name, str) or not name.strip()):
        errors.append(f"reference.name must be a non-empty string, got {name!r}")

    # Validate numeric ranges
    length = get_nested(config, "reference.length")
    if length is not None:
        try:
            if isinstance(length, bool) or int(length) < 1:
                errors.append(f"reference.length must be >= 1, got {length}")
        except (ValueError, TypeError):
            errors.append(f"reference.length must be an integer, got {length}")

    tolerance = get_nested(config, "reference.length_tolerance")
    if tolerance is not None:
        try:
            if isinstance(tolerance, bool) or int(tolerance) < 0:
                errors.append(f"reference.length_tolerance must be >= 0, got {tolerance}")
        except (ValueError, TypeError):
            errors.append(f"reference.length_tolerance must be an integer, got {tolerance}")

    target = get_nested(config, "reference.target")
    if target is not None and (not isinstance(target, str) or not target.strip()):
        errors.append(f"reference.target must be a non-empty string, got {target!r}")

    suffix = get_nested(config, "split.right_suffix")
    if suffix is not None and (not isinstance(suffix, str) or not suffix):
        errors.append(f"split.right_suffix must be a non-empty string, got {suffix!r}")

    drop_tags = get_nested(config, "split.drop_tags")
    if drop_tags is not None:
        if not isinstance(drop_tags, list):
            errors.append(f"split.drop_tags must be a list, got {drop_tags!r}")
        else:
            for tag in drop_tags:
                if not isinstance(tag, str) or not _TAG_RE.match(tag):
                    errors.append(f"split.drop_tags: invalid tag {tag!r}")

    return len(errors) == 0, errors


def print_config_summary(config: Dict[str, Any]) -> None:
    """Print a human-readable config summary."""
    print("=" * 60)
    print("mtcirc Configuration Summary")
    print("=" * 60)

    sections = [
        ("Reference", [
            ("reference.name", "Extended Reference"),
            ("reference.length", "Linear Length"),
            ("reference.target", "Target Reference"),
            ("reference.length_tolerance", "Length Tolerance"),
        ]),
        ("Split", [
            ("split.right_suffix", "Right Read Suffix"),
            ("split.drop_tags", "Dropped Tags"),
        ]),
    ]

    for section_name, fields in sections:
        print(f"\n{section_name}:")
        for key_path, label in fields:
            value = get_nested(config, key_path, "not set")
            print(f"  {label}: {value}")

    print("\n" + "=" * 60)


def main():
    parser = argparse.ArgumentParser(
        description="mtcirc Configuration Parser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "config",
        help="Path to YAML configuration file"
    )

    parser.add_argument(
        "--get",
        metavar="KEY",
        help="Get single value using dot notation (e.g., reference.length)"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and report errors"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON (for --get with complex values)"
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing YAML: {e}", file=sys.stderr)
        sys.exit(1)

    if args.get:
        value = get_nested(config, args.get)
        if value is None:
            print(f"Key not found: {args.get}", file=sys.stderr)
            sys.exit(1)
        if args.json:
            print(json.dumps(value))
        else:
            print(value)

    elif args.validate:
        is_valid, errors = validate_config(config)
        if is_valid:
            print("Configuration is valid!")
            sys.exit(0)
        else:
            print("Configuration errors:", file=sys.stderr)
            for error in errors:
                print(f"  - {error}", file=sys.stderr)
            sys.exit(1)

    else:
        # Default: print summary
        print_config_summary(config)


if __name__ == "__main__":
    main()
