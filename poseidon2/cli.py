"""Command-line interface for poseidon2."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import MISSING_FILE_POLICIES, SCHEDULERS, SCHEMA_POLICIES, load_config
from .pipeline import run_pipeline
from .pipeline_core.error_handling import PipelineError, validate_file_exists
from .version import __version__

logger = logging.getLogger("poseidon2")

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

# CLI option -> config key
CONFIG_OVERRIDES = {
    "missing_files": "missing_file_policy",
    "schema_policy": "metadata_schema_policy",
    "snp_file": "snp_file",
    "scheduler": "scheduler",
    "metadata_suffix": "metadata_suffix",
    "id_column": "metadata_id_column",
    "family_column": "metadata_family_column",
    "log_root": "log_root",
}


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the poseidon2 CLI."""
    parser = argparse.ArgumentParser(
        prog="poseidon2",
        description="poseidon2: Merge Poseidon modules and convert them to EIGENSTRAT.",
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"poseidon2 {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to configuration file",
        default=None,
    )

    # Scheduling
    scheduler_group = parser.add_argument_group("Scheduling")
    scheduler_group.add_argument(
        "--scheduler",
        choices=list(SCHEDULERS),
        help="Where jobs are sent (default from config: slurm)",
    )
    scheduler_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate inputs and log the jobs without submitting anything",
    )
    scheduler_group.add_argument(
        "--log-root", help="Parent directory of the per-run log directories"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    merge_parser = subparsers.add_parser(
        "merge", help="Merge the modules listed in a file and convert the result"
    )
    merge_parser.add_argument("input_file", help="File with one module directory per line")
    merge_parser.add_argument("output_directory", help="Directory receiving the merged dataset")
    merge_parser.add_argument(
        "--name", help="Base name of the merged files (default: output directory name)"
    )
    merge_parser.add_argument(
        "--missing-files",
        choices=list(MISSING_FILE_POLICIES),
        help="Abort on a module with missing files (strict) or skip it with a warning (lenient)",
    )
    merge_parser.add_argument(
        "--schema-policy",
        choices=list(SCHEMA_POLICIES),
        help="Merge differing janno columns (union) or require identical columns (strict)",
    )
    merge_parser.add_argument(
        "--snp-file", help="SNP list for the Human Origins subset (omit to skip extraction)"
    )
    merge_parser.add_argument("--metadata-suffix", help="File suffix of metadata tables")
    merge_parser.add_argument("--id-column", help="Janno column holding the individual ID")
    merge_parser.add_argument(
        "--family-column", help="Janno column holding the family ID, if rows need it to match"
    )

    convert_parser = subparsers.add_parser(
        "convert", help="Convert an existing PLINK dataset to EIGENSTRAT"
    )
    convert_parser.add_argument("bfile_prefix", help="Prefix of the .bed/.bim/.fam files")
    convert_parser.add_argument("output_prefix", help="Prefix of the .geno/.snp/.ind files")

    subparsers.add_parser("extract", help="Extract modules from a merged dataset")

    return parser


def apply_cli_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Copy CLI options that were given into the configuration."""
    for option, key in CONFIG_OVERRIDES.items():
        value = getattr(args, option, None)
        if value is not None:
            cfg[key] = value
    if args.dry_run:
        cfg["scheduler"] = "dry-run"
    return cfg


def _configure_logging(args: argparse.Namespace) -> None:
    logger.setLevel(LOG_LEVELS[args.log_level])

    # If a log file is specified, add a file handler
    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(LOG_LEVELS[args.log_level])
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run main entry point for the poseidon2 CLI.

    Steps:
        1. Parse arguments; without a command, print help and exit.
        2. Configure logging and load config.
        3. Update configuration with CLI parameters.
        4. Validate the input file.
        5. Run the pipeline.

    Returns
    -------
    int
        Exit status: 0 on success, 1 on any failure
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "extract":
        print("Not yet implemented.")
        return 1

    _configure_logging(args)
    start_time = datetime.datetime.now()
    logger.info(f"Run started at {start_time.isoformat()}")
    logger.debug(f"CLI arguments: {args}")

    try:
        cfg = load_config(args.config)
        cfg = apply_cli_overrides(cfg, args)
        logger.debug(f"Configuration loaded: {cfg}")

        if args.command == "merge":
            validate_file_exists(args.input_file, "cli")

        run_pipeline(args, cfg)
    except PipelineError as e:
        logger.error(f"Pipeline failed: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    logger.info(f"Run finished in {(datetime.datetime.now() - start_time).total_seconds():.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
