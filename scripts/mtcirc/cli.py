#!/usr/bin/env python3
"""
Linear-to-Circular Alignment Converter
======================================

Purpose:
    To align reads to a circular molecule such as mtDNA, the reference is
    often extended (e.g. doubled) and reads are aligned to the extended
    sequence. This script converts those alignments back onto the single-copy
    linear reference:

    1. Records starting in the duplicated tail get their start wrapped
    2. Records crossing the end of the linear reference are split in two;
       the right half is named <read>_right and starts at position 0
    3. The extended reference's @SQ line is replaced by the target reference

    Records on other references pass through unchanged.

Required Environment:
    - pysam (SAM/BAM reading and writing)
    - pandas (summary report)
    - pyyaml (optional config file)

Input:
    - SAM/BAM aligned to the extended reference

Output:
    - SAM (stdout or path) or BAM (path ending in .bam)
    - Optional summary TSV of record counts (--summary)

Adjustable Parameters:
    --ref: Extended reference name in the header (required)
    --reflen: Linear reference length (default: 16569)
    --targetref: Output reference name (default: chrM)
    --config: YAML file with the same settings (command line wins)

Usage:
    mt-lintocirc --alignmentfile sample.doubled.bam --ref chrM_doubled -o sample.chrM.bam

    # Non-human mitogenome, explicit target name, summary report
    mt-lintocirc --alignmentfile in.sam --ref mt_ext --reflen 16299 \\
        --targetref MT --summary counts.tsv > out.sam

Exit codes:
    0 success; 1 configuration error, malformed input or reference mismatch
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import yaml

from utils.config_parser import get_nested, load_config, validate_config

from . import __version__
from .bam_io import PROGRAM_ID, convert_alignment_file, write_summary
from .errors import ConfigurationError, LinToCircError
from .geometry import MT_GENOME_LENGTH, MT_TARGET_NAME, ReferenceGeometry
from .partition import DERIVED_TAGS, RIGHT_SUFFIX, SplitOptions

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Log to stderr; stdout may carry SAM output."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mt-lintocirc",
        description="Converts SAM/BAM files mapped to an extended (doubled) circular "
                    "reference back to the single-copy linear reference.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--alignmentfile", required=True,
                        help="Input SAM/BAM aligned to the extended reference")
    parser.add_argument("-o", "--output", default=None,
                        help="Output file (.bam for BAM, otherwise SAM; default: stdout)")
    parser.add_argument("-r", "--ref", default=None,
                        help="Name of the extended reference in the alignment header")
    parser.add_argument("--reflen", type=int, default=None,
                        help=f"Linear reference length (default: {MT_GENOME_LENGTH})")
    parser.add_argument("--targetref", default=None,
                        help=f"Output reference name (default: {MT_TARGET_NAME})")
    parser.add_argument("--config", default=None,
                        help="YAML configuration file")
    parser.add_argument("--summary", default=None,
                        help="Write record counts to this TSV file")
    parser.add_argument("--force", action="store_true",
                        help="Overwrite an existing output file")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge command-line options over config values over defaults.

    Raises:
        ConfigurationError: If the config file holds invalid values
    """
    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ConfigurationError("Invalid configuration: " + "; ".join(errors))

    def pick(cli_value, key_path, default):
        if cli_value is not None:
            return cli_value
        return get_nested(config, key_path, default)

    return {
        "ref": pick(args.ref, "reference.name", None),
        "reflen": pick(args.reflen, "reference.length", MT_GENOME_LENGTH),
        "targetref": pick(args.targetref, "reference.target", MT_TARGET_NAME),
        "length_tolerance": int(get_nested(config, "reference.length_tolerance", 0)),
        "right_suffix": get_nested(config, "split.right_suffix", RIGHT_SUFFIX),
        "drop_tags": tuple(get_nested(config, "split.drop_tags", DERIVED_TAGS)),
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    config: Dict[str, Any] = {}
    if args.config:
        try:
            config = load_config(args.config)
        except (FileNotFoundError, yaml.YAMLError) as e:
            logger.error(f"Cannot load config: {e}")
            return 1

    try:
        settings = resolve_settings(args, config)
        if not settings["ref"]:
            raise ConfigurationError("Extended reference name is required (--ref)")

        geometry = ReferenceGeometry.from_config({"reference": {
            "name": settings["ref"],
            "length": settings["reflen"],
            "target": settings["targetref"],
        }})
        options = SplitOptions(
            right_suffix=settings["right_suffix"],
            drop_tags=settings["drop_tags"],
        )

        logger.info("=" * 60)
        logger.info(f"mtcirc v{__version__}")
        logger.info(f"Input: {args.alignmentfile}")
        logger.info(f"Output: {args.output or 'stdout'}")
        logger.info(
            f"Reference: {geometry.extended_name} -> {geometry.target_name} "
            f"({geometry.linear_length} bp)"
        )
        logger.info("=" * 60)

        program = {
            "ID": PROGRAM_ID,
            "PN": PROGRAM_ID,
            "VN": __version__,
            "CL": " ".join(["mt-lintocirc"] + (argv if argv is not None else sys.argv[1:])),
        }
        stats = convert_alignment_file(
            args.alignmentfile,
            geometry,
            output_path=args.output,
            options=options,
            length_tolerance=settings["length_tolerance"],
            force=args.force,
            program=program,
        )
        if args.summary:
            write_summary(stats, args.summary)
    except LinToCircError as e:
        logger.error(str(e))
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Failed to convert {args.alignmentfile}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
