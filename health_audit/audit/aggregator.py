"""
Reduction of verdicts into host summaries and one run verdict.
"""

from typing import Dict, List, Mapping, Optional

from ..core.logging_config import get_logger
from .report import NOK, OK, ReportWriter
from .results import ResultStore

logger = get_logger(__name__)

HOST_REACHABLE = "HostReachable"

# Static description table used by the summary. Check registration adds to it.
DESCRIPTIONS: Dict[str, str] = {
    HOST_REACHABLE: "checks that the host accepts an SSH connection",
}


def register_description(name: str, description: str) -> None:
    DESCRIPTIONS[name] = description


def describe(name: str) -> str:
    return DESCRIPTIONS.get(name, "")


def summarize(
    host_name: str,
    store: ResultStore,
    writer: ReportWriter,
    descriptions: Optional[Mapping[str, str]] = None,
) -> bool:
    """
    Write the summary of one host and drain its store.

    Writes a ``<host>:`` header and one ``ok``/``nok`` line per recorded
    verdict in recording order.

    Returns:
        True when every recorded verdict is true (an empty store is true)
    """
    table = DESCRIPTIONS if descriptions is None else descriptions
    verdicts = store.drain_all()

    writer.summary_header(host_name)
    for check, verdict in verdicts.items():
        writer.summary_line(OK if verdict else NOK, check, table.get(check, ""))

    passed = all(verdicts.values())
    logger.debug(
        "%s: %s of %s checks passed",
        host_name,
        sum(1 for v in verdicts.values() if v),
        len(verdicts),
    )
    return passed


def record_unreachable(
    host_name: str, store: ResultStore, writer: ReportWriter, reason: str
) -> None:
    """Record a failed connection as a failed verdict of the host."""
    writer.line(NOK, f"unable to connect to {host_name}: {reason}")
    store.set(HOST_REACHABLE, False)


class Aggregator:
    """One-way pass/fail latch over the hosts of a run.

    Every host is still summarized after the latch has tripped; only the final
    label is affected.
    """

    def __init__(self):
        self.overall_passed = True
        self.host_verdicts: List[bool] = []

    def fold(self, passed: bool) -> bool:
        self.host_verdicts.append(passed)
        self.overall_passed = self.overall_passed and passed
        return self.overall_passed
