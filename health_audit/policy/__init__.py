"""
Policy tables: thresholds, expected sets and schedules per host role.
"""

from .tables import (
    Comparator,
    HostPolicy,
    PolicyError,
    PolicyTables,
    ThresholdRule,
    load_policy_tables,
)

__all__ = [
    "Comparator",
    "HostPolicy",
    "PolicyError",
    "PolicyTables",
    "ThresholdRule",
    "load_policy_tables",
]
