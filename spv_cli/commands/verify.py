"""
CLI Verify Command

Verify one or more proofs offline.

Usage:
    spv verify proofs.txt [--root HASH | --header HEX] [--workers N] [--json]

The proofs file holds one proof per line, as JSON or as hex of the
binary form. Each proof is checked against its own target and, when
given, the --root / --header reference.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace

from spv.merkle import verify_merkle_proofs
from spv.schemas.errors import SPVException
from spv_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    parse_proof,
    parse_reference,
    read_lines,
)


logger = logging.getLogger(__name__)


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    try:
        lines = read_lines(args.proofs)
        reference = parse_reference(args.root, args.header)
    except (OSError, ValueError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    proofs = []
    for number, line in enumerate(lines, start=1):
        try:
            proofs.append(parse_proof(line))
        except SPVException as e:
            print(f"Error decoding proof on line {number}: {e.message}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        except ValueError as e:
            print(f"Error decoding proof on line {number}: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

    if not proofs:
        print("Error: no proofs to verify", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    workers = args.workers or args.cli_config.verify.max_workers
    logger.info(f"Verifying {len(proofs)} proof(s)")
    result = verify_merkle_proofs(proofs, reference, max_workers=workers)

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        print(f"verified: {result.passed_count}/{len(result.checks)}")
        for check in result.get_failed_checks():
            print(f"  ✗ {check.check_id}: [{check.code}] {check.message}")

    return EXIT_SUCCESS if result.ok else EXIT_VERIFICATION_FAILED
