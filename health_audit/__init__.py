"""
Health Audit - daily SSH health audits of OSS-RC, ENIQ, ENM, OMBS and UAS servers.
"""

__version__ = "0.1.0"

# audit must load before checks: checks import the audit submodules
from .audit import AuditEngine, AuditProfile, AuditRunResult, Host, get_profile
from .checks import CHECK_REGISTRY, Check, get_check
from .core.config import AuditConfig
from .devices import RemoteHost, SSHHost
from .policy import PolicyTables, load_policy_tables

__all__ = [
    "__version__",
    "AuditEngine",
    "AuditProfile",
    "AuditRunResult",
    "Host",
    "get_profile",
    "CHECK_REGISTRY",
    "Check",
    "get_check",
    "AuditConfig",
    "RemoteHost",
    "SSHHost",
    "PolicyTables",
    "load_policy_tables",
]
