"""
Audit profiles: which hosts are audited and which checks run on them, in order.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, model_validator

from ..core.config import HostOverride
from ..core.logging_config import get_logger

logger = get_logger(__name__)


class Host(BaseModel):
    """An audited server. The role selects its policy and defaults to the name."""

    model_config = {"frozen": True}

    name: str
    role: str = ""
    address: Optional[str] = None
    port: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _default_role(cls, data: Any) -> Any:
        if isinstance(data, str):
            data = {"name": data}
        if isinstance(data, dict) and not data.get("role"):
            data = {**data, "role": data.get("name", "")}
        return data

    @property
    def target(self) -> str:
        """Address to connect to."""
        return self.address or self.name

    def with_override(self, override: HostOverride) -> "Host":
        return self.model_copy(
            update={
                key: value
                for key, value in override.model_dump().items()
                if value is not None
            }
        )


class CheckEntry(BaseModel):
    """A check in a profile, optionally restricted to some roles."""

    model_config = {"frozen": True}

    name: str
    roles: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    def applies_to(self, host: Host) -> bool:
        return not self.roles or host.role in self.roles


class AuditProfile(BaseModel):
    """One audit run definition, e.g. the daily OSS audit."""

    name: str
    title: str
    hosts: List[Host]
    checks: List[CheckEntry]
    mail_sender: str = ""
    mail_group: str = "admins"

    def checks_for(self, host: Host) -> List[str]:
        """Names of the checks to run on host, in profile order."""
        return [entry.name for entry in self.checks if entry.applies_to(host)]

    def with_hosts(self, names: Sequence[str]) -> "AuditProfile":
        """Copy of the profile limited to the named hosts, keeping profile order."""
        unknown = set(names) - {host.name for host in self.hosts}
        if unknown:
            raise ValueError(
                f"hosts not in profile '{self.name}': {', '.join(sorted(unknown))}"
            )
        return self.model_copy(
            update={"hosts": [host for host in self.hosts if host.name in names]}
        )

    def with_overrides(self, overrides: Mapping[str, HostOverride]) -> "AuditProfile":
        hosts = [
            host.with_override(overrides[host.name]) if host.name in overrides else host
            for host in self.hosts
        ]
        return self.model_copy(update={"hosts": hosts})


ENIQ_HOSTS = ["eniq-coordinator", "eniq-engine", "eniq-reader", "eniq-writer"]

BUILTIN_PROFILES: Dict[str, Dict[str, Any]] = {
    "oss": {
        "title": "OSS",
        "hosts": ["oss-master"],
        "mail_sender": "OSS-Audit",
        "checks": [
            "CheckMCs",
            "CheckDisks",
            "CheckDBA",
            "CheckVeritas",
            "CheckVrstDataMon",
            "CheckVrstDb",
            "CheckVrstDbSU",
            "MonVrstDb",
            "CheckFailProc",
            "CheckWtmpx",
            "CheckSyLogSize",
            "CheckSyBackLog",
            "MonErrLog",
            "MonNetLog",
            "CheckCoreFiles",
            "CheckOutOfMem",
            "CheckSecurity",
            "CheckSyErrLog",
            "CheckSyDump",
            "ValDiagProcCache",
            "CheckSyDb",
            "MonConfigExports",
            "CheckOssDisksSU",
            "CheckHomeSU",
            "CheckMoshellLogSU",
        ],
    },
    "eniq": {
        "title": "ENIQ",
        "hosts": ENIQ_HOSTS,
        "mail_sender": "ENIQ-Audit",
        "checks": [
            "CheckDisksSU",
            "CheckBeadm",
            "CheckSrvs",
            "CheckSrvsUptime",
            {"name": "CheckSnapshots", "roles": ["eniq-coordinator"]},
            {"name": "CheckETLC", "roles": ["eniq-engine"]},
            {"name": "DeepCheckETLC", "roles": ["eniq-engine"]},
            "CheckZfsPoolStatus",
            "CheckZfsPoolSU",
            "CheckZfsPoolErrors",
            "CheckHostUptime",
        ],
    },
    "enm": {
        "title": "ENM",
        "hosts": ["enm-ms"],
        "mail_sender": "ENM-Audit",
        "checks": [
            "CheckBashrc",
            "CheckNodesFilesUpdate",
            "CheckHwResources",
            "CheckNas",
            "CheckStoragePool",
            "CheckStaleMount",
            "CheckNodeFs",
            "CheckSystemService",
            "CheckVcsCluster",
            "CheckVcsLltHeartbeat",
            "CheckVcsServiceGroup",
            "CheckConsul",
            "CheckMultipathActive",
            "CheckPuppetEnabled",
            "CheckSanAlert",
            "CheckMdt",
            "EnmNativeHC",
        ],
    },
    "ombs": {
        "title": "OMBS",
        "hosts": ["ombs-site-a", "ombs-site-b"],
        "mail_sender": "OMBS-Audit",
        "checks": [
            "CheckNrOfBackupPolicies",
            "CheckNetBackupClients",
            "CheckBackupPoliciesSchedExec",
        ],
    },
    "uas": {
        "title": "UAS",
        "hosts": [{"name": "uas-1", "role": "uas"}, {"name": "uas-2", "role": "uas"}],
        "mail_sender": "UAS-Audit",
        "checks": ["CheckMountingOk", "KillOldSessions"],
    },
    "bsm-cna": {
        "title": "BSM/CNA",
        "hosts": ["oss-master"],
        "mail_sender": "OSS-Audit",
        "checks": ["CheckBsmAdjusts", "CheckCnaAdjusts"],
    },
}


def profile_from_config(name: str, data: Mapping[str, Any]) -> AuditProfile:
    """
    Build a profile from a mapping such as a ``profiles`` entry of the config.

    Hosts and checks may be given as plain names or as mappings with
    ``name``/``role`` and ``name``/``roles`` keys.
    """
    body = dict(data)
    body.setdefault("title", name.upper())
    return AuditProfile(name=name, **body)


def list_profiles(extra: Optional[Mapping[str, Mapping[str, Any]]] = None) -> List[str]:
    names = dict(BUILTIN_PROFILES)
    names.update(extra or {})
    return sorted(names)


def get_profile(
    name: str, extra: Optional[Mapping[str, Mapping[str, Any]]] = None
) -> AuditProfile:
    """
    Look up a profile, configured profiles replacing built-in ones.

    Raises:
        KeyError: if no profile has the name
    """
    if extra and name in extra:
        logger.debug("Using configured profile %s", name)
        return profile_from_config(name, extra[name])
    if name not in BUILTIN_PROFILES:
        raise KeyError(f"unknown profile '{name}'")
    return profile_from_config(name, BUILTIN_PROFILES[name])
