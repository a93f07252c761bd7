"""
Pytest configuration and shared fixtures for Merkle proof tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_proofs = importlib.import_module("fixtures.proof_fixtures")

FIXTURE_PROOF_HEX = _proofs.FIXTURE_PROOF_HEX
FIXTURE_PROOF_JSON = _proofs.FIXTURE_PROOF_JSON
make_header = _proofs.make_header
make_tree_proofs = _proofs.make_tree_proofs


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def fixture_proof_bytes():
    """Binary form of the interoperability vector."""
    return bytes.fromhex(FIXTURE_PROOF_HEX)


@pytest.fixture
def fixture_proof_json():
    """JSON form of the interoperability vector (pretty-printed)."""
    return FIXTURE_PROOF_JSON


@pytest.fixture
def odd_tree():
    """Seven leaves with proofs for every position."""
    return make_tree_proofs(7, list(range(7)), seed=7)


@pytest.fixture
def header_proof():
    """A single verified proof with a block header target, plus its header."""
    _, root, proofs = make_tree_proofs(13, [5], seed=13)
    header = make_header(root, seed=13)
    return proofs[0].with_block_header(header), header


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
