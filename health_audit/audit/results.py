"""
Verdict storage and audit result models.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .report import ReportWriter


class ResultStore:
    """Check name to verdict mapping for exactly one host run.

    Verdicts keep their recording order. Setting a name twice overwrites the
    earlier verdict in place. Not safe for concurrent writers: one check at a
    time records into a given store.
    """

    def __init__(self):
        self._verdicts: Dict[str, bool] = {}

    def set(self, name: str, verdict: bool) -> None:
        self._verdicts[name] = bool(verdict)

    def get(self, name: str) -> Optional[bool]:
        return self._verdicts.get(name)

    def items(self) -> List[Tuple[str, bool]]:
        return list(self._verdicts.items())

    def drain_all(self) -> Dict[str, bool]:
        """Return every verdict in recording order and leave the store empty."""
        verdicts = dict(self._verdicts)
        self._verdicts.clear()
        return verdicts

    def clear(self) -> None:
        self._verdicts.clear()

    def __len__(self) -> int:
        return len(self._verdicts)

    def __contains__(self, name: object) -> bool:
        return name in self._verdicts


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check invocation."""

    name: str
    verdict: bool
    details: Tuple[str, ...] = ()


@dataclass
class HostAuditResult:
    """Audit results for a single host."""

    host: str
    role: str
    reachable: bool
    passed: bool
    verdicts: Dict[str, bool]
    check_results: List[CheckResult]
    writer: ReportWriter
    audit_timestamp: str
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def failed_checks(self) -> List[str]:
        return [name for name, verdict in self.verdicts.items() if not verdict]

    @property
    def checks_run(self) -> int:
        return len(self.verdicts)


class AuditRunResult(BaseModel):
    """Complete results of one audit run across its hosts."""

    model_config = {"arbitrary_types_allowed": True}

    title: str
    passed: bool
    host_results: List[HostAuditResult] = []
    report: ReportWriter = Field(default_factory=ReportWriter)
    audit_timestamp: str
    mail_sender: str = ""
    mail_group: str = "admins"

    @property
    def subject(self) -> str:
        return f"Daily {self.title} Audit [{'PASSED' if self.passed else 'FAILED'}]"

    @property
    def hosts_audited(self) -> int:
        return len(self.host_results)

    @property
    def unreachable_hosts(self) -> List[str]:
        return [r.host for r in self.host_results if not r.reachable]

    @property
    def failed_hosts(self) -> List[str]:
        return [r.host for r in self.host_results if not r.passed]

    @property
    def total_checks(self) -> int:
        return sum(r.checks_run for r in self.host_results)

    @property
    def failed_checks(self) -> int:
        return sum(len(r.failed_checks) for r in self.host_results)

    def render_report(self) -> str:
        return self.report.render(self.title, self.passed)
