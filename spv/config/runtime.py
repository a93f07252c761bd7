"""
Runtime Configuration

Central configuration for proof verification, output and logging.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# Environment variable prefix
ENV_PREFIX = "SPV_"

OUTPUT_FORMATS = ("hex", "json")


@dataclass
class VerifyConfig:
    """Configuration for proof verification."""
    max_workers: Optional[int] = None  # None lets the thread pool decide

    def __post_init__(self):
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")


@dataclass
class OutputConfig:
    """Configuration for proof output."""
    format: str = "json"  # "hex" (binary wire form) or "json"

    def __post_init__(self):
        if self.format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output format {self.format!r}, expected one of {OUTPUT_FORMATS}"
            )


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - SPV_VERIFY_WORKERS: Thread pool size for batch verification
        - SPV_OUTPUT_FORMAT: Proof output format (hex/json)
        - SPV_LOG_LEVEL: Log level
        - SPV_LOG_FILE: Optional log file path
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}VERIFY_WORKERS"):
            overrides.setdefault("verify", {})["max_workers"] = int(
                os.getenv(f"{ENV_PREFIX}VERIFY_WORKERS")
            )
        if os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT"):
            overrides.setdefault("output", {})["format"] = (
                os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT").lower()
            )
        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL").upper()
        if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            overrides["log_file"] = os.getenv(f"{ENV_PREFIX}LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        verify_data = data.get("verify", {})
        output_data = data.get("output", {})

        verify = VerifyConfig(**verify_data) if verify_data else VerifyConfig()
        output = OutputConfig(**output_data) if output_data else OutputConfig()

        return cls(
            verify=verify,
            output=output,
            log_level=data.get("log_level", "INFO"),
            log_file=data.get("log_file"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        if "verify" in overrides:
            new_config.verify = VerifyConfig(**overrides["verify"])
        if "output" in overrides:
            new_config.output = OutputConfig(**overrides["output"])
        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]
        if "log_file" in overrides:
            new_config.log_file = overrides["log_file"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "verify": {
                "max_workers": self.verify.max_workers,
            },
            "output": {
                "format": self.output.format,
            },
            "log_level": self.log_level,
            "log_file": self.log_file,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def load_config(path: str | Path | None = None) -> RuntimeConfig:
    """
    Load configuration from a YAML file (if given) with env overrides on top.
    """
    if path is None:
        return get_default_config()
    return RuntimeConfig.from_yaml(path).with_env_overrides()
