"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m spv_cli build <txids_file> --target <txid> [--header HEX] [--format hex|json]
    python -m spv_cli verify <proofs_file> [--root HASH | --header HEX] [--json]
    python -m spv_cli convert <proofs_file> --to hex|json
    python -m spv_cli config --show

Environment Variables:
    SPV_VERIFY_WORKERS      Thread pool size for batch verification
    SPV_OUTPUT_FORMAT       Proof output format: hex, json (default: json)
    SPV_LOG_LEVEL           Log level (default: INFO)
    SPV_LOG_FILE            Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from spv.config import load_config
from spv_cli.commands import build, convert, verify
from spv_cli.commands.common import EXIT_RUNTIME_ERROR, EXIT_SUCCESS


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="spv",
        description="Build, verify and convert Merkle inclusion proofs.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build a merkle tree and emit proofs for selected txids",
        description="Compute the merkle root of a txid list and proofs for each --target.",
    )
    build_parser.add_argument(
        "leaves",
        type=str,
        help="File with one txid per line in block order ('-' for stdin)",
    )
    build_parser.add_argument(
        "--target", "-t",
        action="append",
        required=True,
        help="Txid to prove (repeatable; proofs are emitted in this order)",
    )
    target_group = build_parser.add_mutually_exclusive_group()
    target_group.add_argument(
        "--header",
        type=str,
        default=None,
        help="Hex block header to attach as proof target",
    )
    target_group.add_argument(
        "--block-hash",
        type=str,
        default=None,
        help="Block hash to attach as proof target",
    )
    build_parser.add_argument(
        "--format", "-f",
        choices=["hex", "json"],
        default=None,
        help="Proof encoding (default: from config)",
    )
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify proofs offline",
        description="Verify each proof against its target and an optional reference root.",
    )
    verify_parser.add_argument(
        "proofs",
        type=str,
        help="File with one proof per line, JSON or hex ('-' for stdin)",
    )
    reference_group = verify_parser.add_mutually_exclusive_group()
    reference_group.add_argument(
        "--root",
        type=str,
        default=None,
        help="Trusted merkle root",
    )
    reference_group.add_argument(
        "--header",
        type=str,
        default=None,
        help="Trusted hex block header",
    )
    verify_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size (default: from config)",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- convert command ---
    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert proofs between JSON and hex",
    )
    convert_parser.add_argument(
        "proofs",
        type=str,
        help="File with one proof per line, JSON or hex ('-' for stdin)",
    )
    convert_parser.add_argument(
        "--to",
        choices=["hex", "json"],
        required=True,
        help="Target encoding",
    )
    convert_parser.set_defaults(func=convert.convert_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Show effective configuration",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.show:
        print(json.dumps(args.cli_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: spv config --show")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if log_level.upper() == "DEBUG":
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
