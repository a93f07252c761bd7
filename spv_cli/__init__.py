"""
SPV proof CLI

Command-line driver for building, verifying and converting Merkle proofs.

Usage:
    python -m spv_cli build txids.txt --target <txid>
    python -m spv_cli verify proofs.txt --root <hash>
    python -m spv_cli convert proofs.txt --to hex
"""

__version__ = "0.1.0"
