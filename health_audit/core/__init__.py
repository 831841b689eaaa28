"""
Core services shared by the audit engine: logging, credentials and configuration.
"""

from .config import AuditConfig, ConfigError, HostOverride, MailSettings, SSHSettings
from .credentials import CredentialManager, credential_manager
from .logging_config import get_logger, setup_logging

__all__ = [
    "AuditConfig",
    "ConfigError",
    "HostOverride",
    "MailSettings",
    "SSHSettings",
    "CredentialManager",
    "credential_manager",
    "get_logger",
    "setup_logging",
]
