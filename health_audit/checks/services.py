"""
SMF service and uptime checks, including drift detection of service start
times against the previous run.
"""

from typing import Dict

from ..audit.baseline import BaselineError
from ..core.logging_config import get_logger
from .base import COMMAND_FAILED, Check, CheckContext, CheckOutcome
from .parsers import OutputShapeError, column, line_at, non_empty, parse_svcs_long, uptime_days
from .registry import register_check

logger = get_logger(__name__)


async def describe_service(ctx: CheckContext, outcome: CheckOutcome, fmri: str):
    """Run ``svcs -l`` for one service, None when it failed (already reported)."""
    result = await ctx.execute(f"svcs -l {fmri}", check=False)
    if not result.success:
        outcome.nok(COMMAND_FAILED)
        return None
    try:
        return parse_svcs_long(result.lines)
    except OutputShapeError as e:
        outcome.nok(f"unexpected command output: {e}")
        return None


@register_check
class CheckSrvs(Check):
    name = "CheckSrvs"
    description = "checks services states, all required services should be online"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        for fmri in ctx.policy.expected_set(self.name):
            info = await describe_service(ctx, outcome, fmri)
            if info is None:
                continue
            enabled, state = info["enabled"], info["state"]
            outcome.judge(
                enabled == "true" and state == "online",
                f"{enabled}/{state}\t{info.get('name', fmri)}",
            )


@register_check
class CheckSrvsUptime(Check):
    """
    Detects restarted services by comparing their ``state_time`` with the one
    recorded by the previous run.

    The baseline is rewritten with the markers fetched in this run, so a
    restart is reported once and the next run compares against the new time.
    Services whose status could not be fetched are dropped from the baseline.
    """

    name = "CheckSrvsUptime"
    description = (
        "checks each service which must be available on certain host to ensure "
        "that the service start time was not updated"
    )

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        baseline = ctx.baseline()
        try:
            baseline.load()
        except BaselineError as e:
            outcome.nok(str(e))

        fresh: Dict[str, str] = {}
        for fmri in ctx.policy.expected_set(self.name):
            info = await describe_service(ctx, outcome, fmri)
            if info is None:
                continue
            try:
                marker = column(info, "state_time")
            except OutputShapeError as e:
                outcome.nok(f"unexpected command output: {e}")
                continue

            fresh[fmri] = marker
            comparison = baseline.compare_one(fmri, marker)
            previous = comparison.previous or ""
            label = info.get("name", fmri)
            outcome.judge(
                not comparison.drifted,
                f"{previous} == {marker}\t{label}",
                f"{previous} => {marker}\t{label}",
            )
            if comparison.drifted:
                logger.info("%s: %s start time changed to %s", ctx.host_name, fmri, marker)

        try:
            baseline.replace(fresh)
        except BaselineError as e:
            outcome.nok(str(e))


@register_check
class CheckHostUptime(Check):
    name = "CheckHostUptime"
    description = "checks host uptime to ensure that it was not restarted"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute("uptime")
        days = uptime_days(line_at(non_empty(result.lines), 0, "uptime line"))
        outcome.judge(
            rule.passes(days),
            f"up {days} day(s)",
            f"up {days} day(s). Looks like the server was restarted",
        )
