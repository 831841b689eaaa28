"""
Audit checks.

Importing this package registers every check under its name.
"""

from .base import (
    COMMAND_FAILED,
    Check,
    CheckContext,
    CheckOutcome,
    CommandError,
    OnError,
    PassThroughCheck,
    compare_counts,
    evaluate_threshold,
    find_expected_in_observed,
    find_observed_in_expected,
    runs_today,
)
from .parsers import OutputShapeError
from .registry import CHECK_REGISTRY, get_check, list_checks, register_check
from . import eniq, enm, filesystem, ombs, oss, services  # noqa: F401  registers the checks

__all__ = [
    "COMMAND_FAILED",
    "CHECK_REGISTRY",
    "Check",
    "CheckContext",
    "CheckOutcome",
    "CommandError",
    "OnError",
    "OutputShapeError",
    "PassThroughCheck",
    "compare_counts",
    "evaluate_threshold",
    "find_expected_in_observed",
    "find_observed_in_expected",
    "get_check",
    "list_checks",
    "register_check",
    "runs_today",
]
