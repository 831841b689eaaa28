"""
Tests for health_audit.core.config module.
"""

import pytest
import yaml

from health_audit.core import config as config_module
from health_audit.core.config import AuditConfig, ConfigError, HostOverride


class TestAuditConfig:
    """Test cases for AuditConfig."""

    def test_defaults(self):
        """Test default settings."""
        config = AuditConfig()

        assert config.ssh.username == "root"
        assert config.ssh.port == 22
        assert config.baseline_dir == "var"
        assert config.mail.recipients("admins") == ["oss-admins@example.com"]
        assert config.mail.recipients("nobody") == []

    def test_load_from_file(self, tmp_path):
        """Test loading a YAML configuration."""
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "ssh": {"username": "auditor", "timeout": 30},
                    "baseline_dir": "/srv/baselines",
                    "hosts": {"oss-master": {"address": "10.0.0.10"}},
                }
            )
        )

        config = AuditConfig.load(path)

        assert config.ssh.username == "auditor"
        assert config.ssh.timeout == 30
        assert config.baseline_dir == "/srv/baselines"
        assert config.hosts["oss-master"] == HostOverride(address="10.0.0.10")

    def test_explicit_missing_file(self, tmp_path):
        """Test that an explicitly given missing file is an error."""
        with pytest.raises(ConfigError):
            AuditConfig.load(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that unparsable YAML is a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("ssh: [unclosed\n")

        with pytest.raises(ConfigError):
            AuditConfig.load(path)

    def test_invalid_values(self, tmp_path):
        """Test that invalid values are a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"ssh": {"port": "not-a-port"}}))

        with pytest.raises(ConfigError):
            AuditConfig.load(path)

    def test_not_a_mapping(self, tmp_path):
        """Test that a list document is a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n")

        with pytest.raises(ConfigError):
            AuditConfig.load(path)

    def test_default_location_missing(self, tmp_path, monkeypatch):
        """Test falling back to defaults when no config file exists."""
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "none.yaml")

        assert AuditConfig.load().ssh.username == "root"

    def test_environment_overrides(self, tmp_path, monkeypatch):
        """Test HEALTH_AUDIT_* environment variables."""
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "none.yaml")
        monkeypatch.setenv("HEALTH_AUDIT_SSH_USER", "auditor")
        monkeypatch.setenv("HEALTH_AUDIT_BASELINE_DIR", "/srv/baselines")
        monkeypatch.setenv("HEALTH_AUDIT_MAIL_SERVER", "relay.example.com")

        config = AuditConfig.load()

        assert config.ssh.username == "auditor"
        assert config.baseline_dir == "/srv/baselines"
        assert config.mail.server == "relay.example.com"

    def test_non_interactive_from_env(self, monkeypatch):
        """Test the non-interactive environment switch."""
        monkeypatch.setenv("HEALTH_AUDIT_NONINTERACTIVE", "1")
        assert AuditConfig.non_interactive_from_env() is True

        monkeypatch.setenv("HEALTH_AUDIT_NONINTERACTIVE", "0")
        assert AuditConfig.non_interactive_from_env() is False

    def test_example_round_trip(self, tmp_path):
        """Test that the example configuration saves and loads back."""
        path = tmp_path / "example.yaml"
        AuditConfig.example().save_to_file(path)

        loaded = AuditConfig.load(path)

        assert loaded.mail.recipients("cc") == ["control-center@example.com"]
        assert loaded.hosts["eniq-engine"].port == 2222
