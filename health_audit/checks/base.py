"""
Check execution contract.

A check runs one or more commands through the host's runner, judges the
output against the host policy, writes ``ok``/``nok`` lines to the report and
records exactly one named verdict in the host's ResultStore. Sub-items are
ANDed: a single failed item fails the check.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional

from ..audit.baseline import BaselineStore
from ..audit.report import NOK, OK, ReportWriter
from ..audit.results import CheckResult, ResultStore
from ..core.logging_config import get_logger
from ..devices.base import CommandResult, RemoteHost
from ..policy.tables import HostPolicy, PolicyError, ThresholdRule
from .parsers import OutputShapeError

logger = get_logger(__name__)

COMMAND_FAILED = "command execution failed"


class CommandError(Exception):
    """A command returned a non-zero exit status or could not be run."""

    def __init__(self, result: CommandResult):
        self.result = result
        super().__init__(f"{result.command}: {result.error}")


class OnError(str, Enum):
    """How a failed command is judged."""

    FAIL = "fail"
    # absence is success: grep found nothing, ls found no file
    PASS = "pass"


class CheckOutcome:
    """AND-accumulator of the sub-items of one check invocation."""

    def __init__(self, writer: ReportWriter):
        self.writer = writer
        self.passed = True

    def ok(self, detail: str) -> None:
        self.writer.line(OK, detail)

    def nok(self, detail: str) -> None:
        self.writer.line(NOK, detail)
        self.passed = False

    def warn(self, detail: str) -> None:
        """Write a ``nok`` line that does not fail the check."""
        self.writer.line(NOK, detail)

    def note(self, detail: str) -> None:
        self.writer.text(detail)

    def fail(self) -> None:
        self.passed = False

    def judge(self, condition: bool, ok_detail: str, nok_detail: Optional[str] = None) -> bool:
        if condition:
            self.ok(ok_detail)
        else:
            self.nok(ok_detail if nok_detail is None else nok_detail)
        return condition


@dataclass
class CheckContext:
    """Everything a check may touch while auditing one host."""

    host_name: str
    role: str
    runner: RemoteHost
    policy: HostPolicy
    writer: ReportWriter
    store: ResultStore
    baseline_dir: Path = Path("var")
    clock: Callable[[], datetime] = field(default=datetime.now)

    @property
    def now(self) -> datetime:
        return self.clock()

    async def execute(self, command: str, check: bool = True) -> CommandResult:
        """
        Echo command to the report and run it.

        Raises:
            CommandError: when the command fails and check is True
        """
        self.writer.command(command)
        result = await self.runner.execute_command(command)
        if not result.success:
            logger.debug("%s: command failed: %s (%s)", self.host_name, command, result.error)
            if check:
                raise CommandError(result)
        return result

    def record(self, name: str, verdict: bool) -> None:
        """Record a verdict of its own for a sub-check."""
        self.store.set(name, verdict)

    def baseline(self) -> BaselineStore:
        return BaselineStore(self.baseline_dir, self.host_name)


class Check(ABC):
    """
    A named unit of audit logic.

    Subclasses set ``name`` and ``description`` and implement ``run``. A
    check with ``on_error = OnError.PASS`` treats a failed command as the
    successful case and writes ``absence_message``.
    """

    name: str = ""
    description: str = ""
    on_error: OnError = OnError.FAIL
    absence_message: str = ""

    def applies(self, ctx: CheckContext) -> bool:
        """Whether the check runs at all on this host and day."""
        return True

    @abstractmethod
    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        pass

    async def execute(self, ctx: CheckContext) -> Optional[CheckResult]:
        """Run the check and record its verdict. None when it declined to run."""
        if not self.applies(ctx):
            ctx.writer.command(f"{self.name} skipped")
            logger.debug("%s: %s does not apply, skipped", ctx.host_name, self.name)
            return None

        mark = ctx.writer.mark()
        outcome = CheckOutcome(ctx.writer)
        try:
            await self.run(ctx, outcome)
        except CommandError:
            if self.on_error is OnError.PASS:
                outcome.ok(self.absence_message)
            else:
                outcome.nok(COMMAND_FAILED)
        except OutputShapeError as e:
            outcome.nok(f"unexpected command output: {e}")
        except PolicyError as e:
            outcome.nok(f"policy is incomplete: {e}")
        except Exception as e:
            logger.exception("%s: check %s crashed", ctx.host_name, self.name)
            outcome.nok(f"check raised {e.__class__.__name__}: {e}")

        ctx.store.set(self.name, outcome.passed)
        return CheckResult(self.name, outcome.passed, tuple(ctx.writer.lines_since(mark)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class PassThroughCheck(Check):
    """Runs a native health check and echoes its raw output.

    The verdict is false only when the command itself fails.
    """

    command: str = ""
    indent: str = "\t"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute(self.command, check=False)
        if not result.success:
            outcome.nok(COMMAND_FAILED)
        for line in result.lines:
            ctx.writer.raw(f"{self.indent}{line}")


def evaluate_threshold(
    outcome: CheckOutcome, observed: Any, rule: ThresholdRule, label: str
) -> bool:
    """Judge observed against rule and write ``<observed><unit>\\t<label>``."""
    return outcome.judge(rule.passes(observed), f"{observed}{rule.unit}\t{label}")


def find_observed_in_expected(
    outcome: CheckOutcome,
    observed: Iterable[str],
    expected: Iterable[str],
    known: str = "known",
    unknown: str = "unknown",
) -> bool:
    """Every observed item must be expected."""
    expected = set(expected)
    passed = True
    for item in observed:
        if item in expected:
            outcome.ok(f"{known}\t{item}")
        else:
            outcome.nok(f"{unknown}\t{item}")
            passed = False
    return passed


def find_expected_in_observed(
    outcome: CheckOutcome,
    observed: Iterable[str],
    expected: Iterable[str],
    found: str = "found",
    absent: str = "expected but absent",
) -> bool:
    """Every expected item must be observed."""
    observed = set(observed)
    passed = True
    for item in expected:
        if item in observed:
            outcome.ok(f"{found}\t{item}")
        else:
            outcome.nok(f"{absent}\t{item}")
            passed = False
    return passed


def compare_counts(
    outcome: CheckOutcome, observed: Mapping[str, int], expected: Mapping[str, int]
) -> bool:
    """Every expected key must be observed at least the expected number of times."""
    passed = True
    outcome.note("have/must\t\ttable")
    for item, must in expected.items():
        have = observed.get(item, 0)
        if have >= must:
            outcome.ok(f"{have}/{must}\t\t{item}")
        else:
            outcome.nok(f"{have}/{must}\t\t{item}")
            passed = False
    return passed


def unique(items: Iterable[str]) -> List[str]:
    """Items without duplicates, in first-seen order."""
    return list(dict.fromkeys(items))


def runs_today(weekdays: str, now: datetime) -> bool:
    """Whether a weekday expression such as ``"Tuesday, Thursday"`` or ``"All"`` covers now."""
    return "All" in weekdays or now.strftime("%A") in weekdays
