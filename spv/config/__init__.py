"""
Runtime Configuration Module

Provides configuration loading and management for proof tooling.
"""

from .runtime import (
    OutputConfig,
    RuntimeConfig,
    VerifyConfig,
    get_default_config,
    load_config,
)

__all__ = [
    "RuntimeConfig",
    "VerifyConfig",
    "OutputConfig",
    "get_default_config",
    "load_config",
]
