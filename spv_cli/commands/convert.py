"""
CLI Convert Command

Convert proofs between the JSON and binary (hex) encodings.

Usage:
    spv convert proofs.txt --to hex|json
"""

from __future__ import annotations

import sys
from argparse import Namespace

from spv.schemas.errors import SPVException
from spv_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    format_proof,
    parse_proof,
    read_lines,
)


def convert_cmd(args: Namespace) -> int:
    """Execute the convert command."""
    try:
        lines = read_lines(args.proofs)
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    for number, line in enumerate(lines, start=1):
        try:
            print(format_proof(parse_proof(line), args.to))
        except (SPVException, ValueError) as e:
            print(f"Error converting proof on line {number}: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

    return EXIT_SUCCESS
