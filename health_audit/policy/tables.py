"""
Per-role policy tables.

A HostPolicy holds everything a check needs to judge the output of its
commands on one role: numeric thresholds with their comparator, per-item
thresholds (one per disk or pool), expected sets (required services, allowed
users), expected counts and weekday schedules. Checks never hardcode these.
"""

import operator
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field

from ..core.logging_config import get_logger

logger = get_logger(__name__)

Limit = Union[int, float, List[str]]


class PolicyError(KeyError):
    """Raised when a role or a policy entry is missing."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class Comparator(str, Enum):
    """How an observed value is compared with its limit. Holding means ok."""

    LT = "<"
    LE = "<="
    EQ = "=="
    GT = ">"
    GE = ">="
    IN = "in"

    def holds(self, observed: Any, limit: Any) -> bool:
        if self is Comparator.IN:
            return observed in limit
        return _OPERATORS[self](observed, limit)


_OPERATORS = {
    Comparator.LT: operator.lt,
    Comparator.LE: operator.le,
    Comparator.EQ: operator.eq,
    Comparator.GT: operator.gt,
    Comparator.GE: operator.ge,
}


class ThresholdRule(BaseModel):
    """A limit and the comparator an observed value must satisfy."""

    model_config = {"frozen": True}

    limit: Limit
    comparator: Comparator = Comparator.LE
    unit: str = ""

    def passes(self, observed: Any) -> bool:
        return self.comparator.holds(observed, self.limit)

    def __str__(self) -> str:
        return f"{self.comparator.value} {self.limit}{self.unit}"


class HostPolicy(BaseModel):
    """Static configuration of one host role, immutable during a run."""

    model_config = {"frozen": True}

    role: str
    description: str = ""
    thresholds: Dict[str, ThresholdRule] = Field(default_factory=dict)
    item_thresholds: Dict[str, Dict[str, ThresholdRule]] = Field(default_factory=dict)
    expected_sets: Dict[str, List[str]] = Field(default_factory=dict)
    expected_counts: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    schedules: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    markers: Dict[str, str] = Field(default_factory=dict)
    settings: Dict[str, Any] = Field(default_factory=dict)

    def _missing(self, kind: str, key: str) -> PolicyError:
        return PolicyError(f"role '{self.role}' has no {kind} for {key}")

    def threshold(self, check: str) -> ThresholdRule:
        try:
            return self.thresholds[check]
        except KeyError:
            raise self._missing("threshold", check) from None

    def item_threshold(self, check: str, item: str) -> ThresholdRule:
        try:
            return self.item_thresholds[check][item]
        except KeyError:
            raise self._missing("threshold", f"{check}[{item}]") from None

    def expected_set(self, check: str) -> List[str]:
        try:
            return list(self.expected_sets[check])
        except KeyError:
            raise self._missing("expected set", check) from None

    def expected_count(self, check: str) -> Dict[str, int]:
        try:
            return dict(self.expected_counts[check])
        except KeyError:
            raise self._missing("expected counts", check) from None

    def schedule(self, check: str) -> Dict[str, str]:
        try:
            return dict(self.schedules[check])
        except KeyError:
            raise self._missing("schedule", check) from None

    def marker(self, key: str) -> str:
        try:
            return self.markers[key]
        except KeyError:
            raise self._missing("marker", key) from None

    def setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)


class PolicyTables(BaseModel):
    """All role policies known to a run, keyed by role name."""

    roles: Dict[str, HostPolicy] = Field(default_factory=dict)

    def for_role(self, role: str) -> HostPolicy:
        try:
            return self.roles[role]
        except KeyError:
            raise PolicyError(f"no policy defined for role '{role}'") from None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def merged(self, other: "PolicyTables") -> "PolicyTables":
        """Return tables where roles of other replace roles of the same name."""
        roles = dict(self.roles)
        roles.update(other.roles)
        return PolicyTables(roles=roles)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyTables":
        roles = {}
        for role, body in (data.get("roles") or {}).items():
            body = dict(body or {})
            body.setdefault("role", role)
            roles[role] = HostPolicy(**body)
        return cls(roles=roles)

    @classmethod
    def from_file(cls, path: Path) -> "PolicyTables":
        """Load tables from a YAML or JSON file with a top-level ``roles`` mapping."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Policy file {path} must contain a mapping")
        tables = cls.from_dict(data)
        logger.debug("Loaded %s role policies from %s", len(tables.roles), path)
        return tables

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roles": {
                name: policy.model_dump(mode="json", exclude={"role"})
                for name, policy in self.roles.items()
            }
        }

    @classmethod
    def builtin(cls) -> "PolicyTables":
        from .builtin import builtin_roles

        return cls(roles=builtin_roles())


def load_policy_tables(policy_file: Optional[Path] = None) -> PolicyTables:
    """Built-in tables, with roles from policy_file replacing built-in ones."""
    tables = PolicyTables.builtin()
    if policy_file is not None:
        tables = tables.merged(PolicyTables.from_file(policy_file))
    return tables
