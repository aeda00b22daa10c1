"""
Command-line interface for the homebrew bundle builder.

Usage:
    python -m src.bundler.cli [build] [--validate {full,relaxed,off}] ...
    python -m src.bundler.cli check-patterns --ignore-patterns '/x/i ;; text'
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config as bundle_config
from . import pipeline
from .errors import BundleError, ConfigError, ValidationFailedError
from .validation import VALIDATION_MODES, parse_ignore_patterns
from src.logging_config import configure_logging

COMMANDS = ("build", "check-patterns")


def _load(args: argparse.Namespace) -> bundle_config.BundleConfig:
    base_dir = Path(args.base_dir).resolve()
    bundle_config.load_env_file(base_dir)
    return bundle_config.load_config(
        base_dir=base_dir,
        config_path=Path(args.config) if args.config else None,
        overrides={
            "roots": args.root,
            "output": args.output,
            "validate": args.validate,
            "ignore_patterns": args.ignore_patterns,
            "validator_bin": args.validator_bin,
            "side_log": args.side_log,
        },
    )


def cmd_build(args: argparse.Namespace) -> int:
    """Build the bundle."""
    try:
        cfg = _load(args)
        result = pipeline.build_bundle(cfg)
    except ValidationFailedError as e:
        print(e.diagnostic, file=sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (BundleError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    meta = result.bundle.metadata
    print(f"Bundle written to: {result.output_path}")
    print(
        f"   metadata: edition={meta.edition}, dateAdded={meta.date_added}, "
        f"dateLastModified={meta.date_last_modified}"
    )
    print(f"   files: {result.files_processed}, sources: {len(meta.sources)}")
    if result.ignored:
        print(f"   ignored validation errors: {len(result.ignored)} (see {cfg.side_log_path})")

    if args.verbose:
        for key, count in result.counts().items():
            print(f"   {key}: {count}")

    return 0


def cmd_check_patterns(args: argparse.Namespace) -> int:
    """Parse ignore patterns and list the resulting rules."""
    try:
        if args.ignore_patterns is not None:
            rules = parse_ignore_patterns(args.ignore_patterns)
        else:
            rules = _load(args).ignore_rules
    except ConfigError as e:
        print(f"Invalid ignore patterns: {e}", file=sys.stderr)
        return 1

    if not rules:
        print("No extra ignore patterns configured.")
        return 0

    print(f"{len(rules)} ignore pattern(s):")
    for rule in rules:
        print(f"  [{rule.kind}] {rule.source}")
    return 0


def _normalize_argv(argv: List[str]) -> List[str]:
    """Default to the build command unless argv starts with a command or a help flag."""
    if argv and argv[0] in COMMANDS + ("-h", "--help"):
        return argv
    return ["build"] + argv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="build-bundle",
        description="Merge homebrew content files into a single validated bundle"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--base-dir", default=".", help="Directory containing the content roots")
    common.add_argument("--config", help="YAML config file (default: <base-dir>/config/bundle.yaml)")
    common.add_argument("--root", action="append", help="Content root directory (repeatable, overrides config)")
    common.add_argument("--output", help="Output bundle path relative to base dir")
    common.add_argument("--validate", choices=VALIDATION_MODES, help="Validation mode (default: full)")
    common.add_argument("--ignore-patterns", help="Extra ignore patterns for relaxed mode, separated by ';;' or '||'")
    common.add_argument("--validator-bin", help="Path to the validator executable")
    common.add_argument("--side-log", help="File receiving suppressed validator diagnostics")
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    build_p = subparsers.add_parser("build", parents=[common], help="Build the bundle (default)")
    build_p.set_defaults(func=cmd_build)

    check_p = subparsers.add_parser("check-patterns", parents=[common], help="Validate ignore patterns")
    check_p.set_defaults(func=cmd_check_patterns)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(_normalize_argv(argv))

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
