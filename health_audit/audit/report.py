"""
Report text accumulation.

The detailed buffer receives every command that was attempted and the
``ok``/``nok`` lines the checks write about it. The summary buffer receives one
line per recorded verdict. A writer is owned by one host run; the engine merges
the host writers in host order into the run report.
"""

import sys
from pathlib import Path
from typing import List, Optional

OK = "ok"
NOK = "nok"


class ReportWriter:
    """Accumulates detailed and summary report lines."""

    def __init__(self):
        self._detailed: List[str] = []
        self._summary: List[str] = []

    # detailed section

    def raw(self, line: str) -> None:
        self._detailed.append(line)

    def enter_host(self, host: str) -> None:
        self.raw("")
        self.raw(f"-> {host}")

    def leave_host(self, host: str) -> None:
        self.raw("")
        self.raw(f"<- {host}")

    def command(self, command: str) -> None:
        self.raw("")
        self.raw(f"->> {command}")

    def line(self, tag: str, detail: str) -> None:
        """Write a tagged result line: ``\\t<tag>\\t<detail>``."""
        self.raw(f"\t{tag}\t{detail}")

    def text(self, detail: str) -> None:
        """Write free text under the last result line."""
        self.raw(f"\t\t{detail}")

    def mark(self) -> int:
        return len(self._detailed)

    def lines_since(self, mark: int) -> List[str]:
        return list(self._detailed[mark:])

    # summary section

    def summary_header(self, host: str) -> None:
        self._summary.append("")
        self._summary.append(f"{host}:")

    def summary_line(self, tag: str, check: str, description: str) -> None:
        self._summary.append(f"{tag}\t{check} - {description}")

    # output

    @property
    def detailed_lines(self) -> List[str]:
        return list(self._detailed)

    @property
    def summary_lines(self) -> List[str]:
        return list(self._summary)

    @property
    def detailed(self) -> str:
        return "\n".join(self._detailed)

    @property
    def summary(self) -> str:
        return "\n".join(self._summary)

    def extend(self, other: "ReportWriter") -> None:
        """Append the content of another writer after this one."""
        self._detailed.extend(other._detailed)
        self._summary.extend(other._summary)

    def render(self, title: str, passed: bool) -> str:
        """Render the final report for an audit titled e.g. ``OSS``."""
        verdict = "PASSED" if passed else "FAILED"
        parts = [
            f"\t/// {title.upper()} AUDIT SUMMARY INFORMATION ///",
            self.summary,
            "",
            f"\t/// {title.upper()} AUDIT DETAILED INFORMATION ///",
            "",
            f"{title} Audit Started:",
            self.detailed,
            "",
            f"{title} Audit Finished",
            "",
            "",
            f"\t/// AUDIT IS {verdict} ///",
            "",
        ]
        return "\n".join(parts)

    def flush(self, title: str, passed: bool, path: Optional[Path] = None) -> str:
        """Render the report and write it to path or stdout."""
        text = self.render(title, passed)
        write_report(text, path)
        return text


def write_report(text: str, path: Optional[Path] = None) -> None:
    """Write a rendered report to path, or to stdout when path is None."""
    if path is None:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
