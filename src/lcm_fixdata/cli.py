"""
Command-line interface for repairing project files.
"""
from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

from lxml import etree

from . import __version__
from .circular_refs import CircularRefBreakerService
from .config import load_config
from .exceptions import ConfigError, FixDataError
from .fixer import DataFixer
from .fixlog import FixLog
from .lexmodel import LexModel
from .progress import LoggingProgress

EXIT_CLEAN = 0
EXIT_FIXED = 1
EXIT_ERROR = 2


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the fixdata CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fixdata",
        description="Find and repair data errors in FieldWorks .fwdata project files",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # fix command
    fix_parser = subparsers.add_parser(
        "fix",
        help="Repair a project file in place (the original is kept as a backup)",
    )
    fix_parser.add_argument(
        "file",
        type=Path,
        help=".fwdata project file",
    )
    fix_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="YAML file with fixer settings",
    )
    fix_parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the .fixes report next to the file",
    )
    fix_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log progress and every fix",
    )
    fix_parser.set_defaults(func=cmd_fix)

    # break-cycles command
    cycles_parser = subparsers.add_parser(
        "break-cycles",
        help="Remove circular complex form references",
    )
    cycles_parser.add_argument(
        "file",
        type=Path,
        help=".fwdata project file",
    )
    cycles_parser.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not copy the file to a .bak backup before saving",
    )
    cycles_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log each repair",
    )
    cycles_parser.set_defaults(func=cmd_break_cycles)

    return parser


def cmd_fix(args: argparse.Namespace) -> int:
    """Handle fix command."""
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"\n  [CONFIG ERROR] {e}")
        if e.line:
            print(f"                Line: {e.line}")
        return EXIT_ERROR
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return EXIT_ERROR

    if not args.file.exists():
        print(f"\n  [ERROR] File not found: {args.file}")
        return EXIT_ERROR

    print(f"\nChecking {args.file}...")
    log = FixLog()
    fixer = DataFixer(args.file, log, progress=LoggingProgress(), config=config)
    try:
        result = fixer.fix_errors_and_save()
    except (FixDataError, etree.XMLSyntaxError, ValueError) as e:
        print(f"\n  [ERROR] {e}")
        print("  The file was not changed.")
        return EXIT_ERROR

    print(f"  Passes:  {result.passes}")
    print(f"  Fixed:   {result.fixed_count}")
    print(f"  Unfixed: {len(log.unfixed)}")
    print(f"  Backup:  {result.backup_path}")
    if not result.converged:
        print("  [WARN] Repairs did not settle before the pass limit.")

    if config.write_report and len(log) > 0 and not args.no_report:
        report = log.write_report(
            args.file.with_suffix(config.report_suffix),
            title=f"Errors found in {args.file.name}",
        )
        print(f"  Report:  {report}")

    if result.fixed_count == 0:
        print("\nNo errors needed fixing.")
        return EXIT_CLEAN
    return EXIT_FIXED


def cmd_break_cycles(args: argparse.Namespace) -> int:
    """Handle break-cycles command."""
    if not args.file.exists():
        print(f"\n  [ERROR] File not found: {args.file}")
        return EXIT_ERROR

    print(f"\nLoading {args.file}...")
    try:
        model = LexModel.load(args.file)
    except (FixDataError, etree.XMLSyntaxError) as e:
        print(f"\n  [ERROR] {e}")
        return EXIT_ERROR

    result = CircularRefBreakerService().reference_breaker(model)
    print()
    print(result.report)

    if result.circular == 0:
        return EXIT_CLEAN

    if not args.no_backup:
        backup = args.file.with_suffix(".bak")
        shutil.copy2(args.file, backup)
        print(f"\n  Backup: {backup}")
    model.save(args.file)
    print(f"  Saved:  {args.file}")
    return EXIT_FIXED


if __name__ == "__main__":
    sys.exit(main())
