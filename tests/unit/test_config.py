"""
Runtime Configuration Unit Tests
Tests for spv/config/runtime.py
"""
import pytest

from spv.config import OutputConfig, RuntimeConfig, VerifyConfig, load_config


_ENV_VARS = ["SPV_VERIFY_WORKERS", "SPV_OUTPUT_FORMAT", "SPV_LOG_LEVEL", "SPV_LOG_FILE"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "spv.yaml"
    path.write_text(
        "verify:\n"
        "  max_workers: 2\n"
        "output:\n"
        "  format: json\n"
        "log_level: WARNING\n"
        "extra:\n"
        "  network: testnet\n"
    )
    return path


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        config = RuntimeConfig()

        assert config.verify.max_workers is None
        assert config.output.format == "json"
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.extra == {}

    def test_from_env_without_variables(self):
        assert RuntimeConfig.from_env().to_dict() == RuntimeConfig().to_dict()


class TestValidation:
    """Tests for invalid values."""

    @pytest.mark.parametrize("workers", [0, -1])
    def test_invalid_workers(self, workers):
        with pytest.raises(ValueError, match="max_workers"):
            VerifyConfig(max_workers=workers)

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Unknown output format"):
            OutputConfig(format="xml")

    def test_invalid_format_in_dict(self):
        with pytest.raises(ValueError):
            RuntimeConfig.from_dict({"output": {"format": "yaml"}})


class TestEnvironment:
    """Tests for SPV_* environment variables."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SPV_VERIFY_WORKERS", "3")
        monkeypatch.setenv("SPV_OUTPUT_FORMAT", "HEX")
        monkeypatch.setenv("SPV_LOG_LEVEL", "debug")
        monkeypatch.setenv("SPV_LOG_FILE", "/tmp/spv.log")

        config = RuntimeConfig.from_env()

        assert config.verify.max_workers == 3
        assert config.output.format == "hex"
        assert config.log_level == "DEBUG"
        assert config.log_file == "/tmp/spv.log"

    def test_invalid_env_format(self, monkeypatch):
        monkeypatch.setenv("SPV_OUTPUT_FORMAT", "xml")
        with pytest.raises(ValueError):
            RuntimeConfig.from_env()

    def test_with_env_overrides_no_env_returns_same(self):
        config = RuntimeConfig()
        assert config.with_env_overrides() is config

    def test_with_env_overrides_copies(self, monkeypatch):
        config = RuntimeConfig.from_dict({"log_level": "WARNING"})
        monkeypatch.setenv("SPV_OUTPUT_FORMAT", "hex")

        updated = config.with_env_overrides()

        assert updated.output.format == "hex"
        assert updated.log_level == "WARNING"
        assert config.output.format == "json"


class TestYaml:
    """Tests for YAML loading."""

    def test_from_yaml(self, config_file):
        config = RuntimeConfig.from_yaml(config_file)

        assert config.verify.max_workers == 2
        assert config.output.format == "json"
        assert config.log_level == "WARNING"
        assert config.extra == {"network": "testnet"}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert RuntimeConfig.from_yaml(path).to_dict() == RuntimeConfig().to_dict()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RuntimeConfig.from_yaml(tmp_path / "missing.yaml")

    def test_load_config_applies_env(self, config_file, monkeypatch):
        monkeypatch.setenv("SPV_VERIFY_WORKERS", "8")
        config = load_config(config_file)

        assert config.verify.max_workers == 8
        assert config.log_level == "WARNING"

    def test_to_dict_round_trip(self, config_file):
        config = RuntimeConfig.from_yaml(config_file)
        assert RuntimeConfig.from_dict(config.to_dict()).to_dict() == config.to_dict()
