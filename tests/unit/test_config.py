"""Unit tests for configuration and logging setup."""

import logging

import pytest

from netloom.utils import config as config_module
from netloom.utils.config import NetloomConfig, load_config
from netloom.utils.logging import setup_logging

ENV_VARS = [
    "NETLOOM_CONFIG",
    "NETLOOM_SIMPLIFY_POLICIES",
    "NETLOOM_KUBE_CLIENT_TIMEOUT",
    "NETLOOM_CONTEXT",
    "NETLOOM_LOG_LEVEL",
    "NETLOOM_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")


class TestLoadConfig:
    """Configuration file and environment overrides."""

    def test_defaults(self):
        assert load_config() == NetloomConfig()

    def test_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("simplify-policies: false\nkube_client_timeout: 30\ncontext: kind-dev\nlog_level: debug\n")

        config = load_config(path)

        assert config.simplify_policies is False
        assert config.kube_client_timeout == 30.0
        assert config.context == "kind-dev"
        assert config.log_level == "debug"

    def test_default_path(self, monkeypatch, tmp_path):
        path = tmp_path / "default.yaml"
        path.write_text("context: from-default\n")
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", path)

        assert load_config().context == "from-default"

    def test_env_path(self, monkeypatch, tmp_path):
        path = tmp_path / "env.yaml"
        path.write_text("context: from-env\n")
        monkeypatch.setenv("NETLOOM_CONFIG", str(path))

        assert load_config().context == "from-env"

    def test_env_overrides_file(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("simplify_policies: true\nkube_client_timeout: 30\n")
        monkeypatch.setenv("NETLOOM_SIMPLIFY_POLICIES", "no")
        monkeypatch.setenv("NETLOOM_KUBE_CLIENT_TIMEOUT", "5")
        monkeypatch.setenv("NETLOOM_LOG_FILE", "/tmp/netloom.log")

        config = load_config(path)

        assert config.simplify_policies is False
        assert config.kube_client_timeout == 5.0
        assert config.log_file == "/tmp/netloom.log"

    def test_unknown_key_warns(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("colour: purple\n")

        with caplog.at_level(logging.WARNING):
            config = load_config(path)

        assert config == NetloomConfig()
        assert "ignoring unknown config key 'colour'" in caplog.text

    @pytest.mark.parametrize(
        "content",
        ["simplify_policies: maybe\n", "kube_client_timeout: soon\n", "kube_client_timeout: -1\n"],
    )
    def test_invalid_values(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)

        with pytest.raises(ValueError, match="invalid value for"):
            load_config(path)

    def test_file_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path)


class TestSetupLogging:
    """Root logger configuration."""

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="invalid log level: bogus"):
            setup_logging("bogus")
