"""
SPV Merkle proofs.

Builds and verifies transaction inclusion proofs for Bitcoin-style block
Merkle trees.
"""

__version__ = "0.1.0"
