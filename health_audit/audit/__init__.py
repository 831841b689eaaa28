"""
Audit pipeline: verdict storage, aggregation, baseline, report and engine.
"""

# the checks package imports these submodules, so they load before the engine
from .report import NOK, OK, ReportWriter, write_report
from .results import AuditRunResult, CheckResult, HostAuditResult, ResultStore
from .baseline import BaselineComparison, BaselineError, BaselineStore
from .aggregator import DESCRIPTIONS, HOST_REACHABLE, Aggregator, record_unreachable, summarize
from .profiles import AuditProfile, CheckEntry, Host, get_profile, list_profiles
from .engine import AuditEngine, DeviceFactory

__all__ = [
    "NOK",
    "OK",
    "ReportWriter",
    "write_report",
    "AuditRunResult",
    "CheckResult",
    "HostAuditResult",
    "ResultStore",
    "BaselineComparison",
    "BaselineError",
    "BaselineStore",
    "DESCRIPTIONS",
    "HOST_REACHABLE",
    "Aggregator",
    "record_unreachable",
    "summarize",
    "AuditProfile",
    "CheckEntry",
    "Host",
    "get_profile",
    "list_profiles",
    "AuditEngine",
    "DeviceFactory",
]
