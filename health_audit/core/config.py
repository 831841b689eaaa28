"""
Run configuration: SSH settings, baseline location, mail relay and host overrides.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".health-audit" / "config.yaml"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or is invalid."""


class SSHSettings(BaseModel):
    """How to reach the audited hosts."""

    username: str = "root"
    password: Optional[str] = None
    private_key: Optional[str] = "~/.ssh/id_rsa"
    known_hosts: Optional[str] = "~/.ssh/known_hosts"
    port: int = 22
    timeout: int = 10
    command_timeout: Optional[float] = None


class MailSettings(BaseModel):
    """Relay host that runs mailx on behalf of the auditor."""

    server: Optional[str] = None
    username: str = "audit"
    port: int = 22
    groups: Dict[str, List[str]] = Field(
        default_factory=lambda: {"admins": ["oss-admins@example.com"]}
    )

    def recipients(self, group: str) -> List[str]:
        return list(self.groups.get(group, []))


class HostOverride(BaseModel):
    """Per-host connection override (address, port or role)."""

    address: Optional[str] = None
    port: Optional[int] = None
    role: Optional[str] = None


class AuditConfig(BaseModel):
    """Top-level configuration loaded from ~/.health-audit/config.yaml."""

    ssh: SSHSettings = Field(default_factory=SSHSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    baseline_dir: str = "var"
    policy_file: Optional[str] = None
    hosts: Dict[str, HostOverride] = Field(default_factory=dict)
    profiles: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AuditConfig":
        """
        Load configuration.

        An explicitly given path must exist. When no path is given the default
        location is used if present, otherwise settings come from the
        environment.
        """
        if config_path is not None:
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_path}")
            return cls.load_from_file(config_path)

        if not DEFAULT_CONFIG_PATH.exists():
            logger.info(
                "Config file not found at %s, using defaults and environment variables",
                DEFAULT_CONFIG_PATH,
            )
            return cls.load_from_env()

        return cls.load_from_file(DEFAULT_CONFIG_PATH)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AuditConfig":
        """Load configuration from a YAML file, then apply environment overrides."""
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config {config_path} must contain a mapping")

        try:
            config = cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {config_path}: {e}") from e

        logger.debug("Loaded configuration from %s", config_path)
        return config.apply_env()

    @classmethod
    def load_from_env(cls) -> "AuditConfig":
        """Load configuration from environment variables only."""
        return cls().apply_env()

    def apply_env(self) -> "AuditConfig":
        """Override settings from HEALTH_AUDIT_* environment variables."""
        if os.getenv("HEALTH_AUDIT_SSH_USER"):
            self.ssh.username = os.environ["HEALTH_AUDIT_SSH_USER"]
        if os.getenv("HEALTH_AUDIT_SSH_KEY"):
            self.ssh.private_key = os.environ["HEALTH_AUDIT_SSH_KEY"]
        if os.getenv("HEALTH_AUDIT_KNOWN_HOSTS"):
            self.ssh.known_hosts = os.environ["HEALTH_AUDIT_KNOWN_HOSTS"]
        if os.getenv("HEALTH_AUDIT_BASELINE_DIR"):
            self.baseline_dir = os.environ["HEALTH_AUDIT_BASELINE_DIR"]
        if os.getenv("HEALTH_AUDIT_MAIL_SERVER"):
            self.mail.server = os.environ["HEALTH_AUDIT_MAIL_SERVER"]
        if os.getenv("HEALTH_AUDIT_MAIL_USER"):
            self.mail.username = os.environ["HEALTH_AUDIT_MAIL_USER"]
        return self

    @staticmethod
    def non_interactive_from_env() -> bool:
        return os.environ.get("HEALTH_AUDIT_NONINTERACTIVE") == "1"

    def save_to_file(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to a YAML file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )

        logger.info("Configuration saved to %s", config_path)

    @classmethod
    def example(cls) -> "AuditConfig":
        """Configuration with every section filled in, for create-example."""
        return cls(
            ssh=SSHSettings(username="root", private_key="~/.ssh/id_rsa"),
            mail=MailSettings(
                server="uas-2",
                username="audit",
                groups={
                    "admins": ["oss-admins@example.com", "eniq-admins@example.com"],
                    "cc": ["control-center@example.com"],
                },
            ),
            baseline_dir="/var/lib/health-audit",
            hosts={
                "oss-master": HostOverride(address="10.0.0.10"),
                "eniq-engine": HostOverride(address="10.0.1.11", port=2222),
            },
        )
