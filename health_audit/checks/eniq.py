"""
ENIQ statistics checks on the ETLC engine log.
"""

from collections import Counter
from typing import Dict

from ..audit.aggregator import register_description
from .base import (
    COMMAND_FAILED,
    Check,
    CheckContext,
    CheckOutcome,
    compare_counts,
    find_expected_in_observed,
    find_observed_in_expected,
)
from .parsers import OutputShapeError, field_at, non_empty
from .registry import register_check

ENGINE_LOG = "/eniq/log/sw_log/engine/engine-{date}.log"

FIND_PARSED_IN_KNOWN = "FindParsedInKnown"
FIND_KNOWN_IN_PARSED = "FindKnownInParsed"
COMPARE_NUM_PARSED = "CompareNumParsed"

register_description(
    FIND_PARSED_IN_KNOWN, "checks that all parsed entries of ETLC are known already"
)
register_description(
    FIND_KNOWN_IN_PARSED, "checks that all known entries of ETLC are found in the today's log"
)
register_description(
    COMPARE_NUM_PARSED, "compares the number of parsed entries of ETLC with required one"
)


def engine_log(ctx: CheckContext) -> str:
    return ENGINE_LOG.format(date=f"{ctx.now:%Y_%m_%d}")


def loader_table(line: str) -> str:
    """
    Table of a ``parsed`` engine log line, from its fifth field.

    ``Loader_DC_E_RBS.INTF_DC_E_RBS-eniq_oss_2.parsed`` -> ``DC_E_RBS-eniq_oss_2``
    """
    loader = field_at(line, 4, "loader set")
    parts = loader.split(".")
    if len(parts) < 2:
        raise OutputShapeError(f"expected <set>.<table> loader name, got {loader!r}")
    return parts[1].removeprefix("INTF_")


@register_check
class CheckETLC(Check):
    name = "CheckETLC"
    description = "checks activities in ENIQ ETLC Monitoring"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        for oss in ctx.policy.expected_set(self.name):
            result = await ctx.execute(
                f"grep -i parsed {engine_log(ctx)} | grep {oss}", check=False
            )
            if not result.success:
                outcome.nok(COMMAND_FAILED)
                continue
            entries = len(result.lines)
            outcome.judge(
                rule.passes(entries),
                f"number of parsed entries({entries}) for {oss} is at least {rule.limit}",
                f"number of parsed entries({entries}) for {oss} is less than {rule.limit}",
            )


@register_check
class DeepCheckETLC(Check):
    """
    Reconciles today's parsed tables with the known tables of the policy.

    Three independent comparisons are made, each recorded as a verdict of its
    own: every parsed table is known, every known table was parsed, and every
    known table was parsed at least its minimum number of times. Any failed
    comparison fails the check.
    """

    name = "DeepCheckETLC"
    description = "performs deep analysis of activities in ENIQ ETLC Monitoring"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        known = ctx.policy.expected_count(self.name)
        result = await ctx.execute(f"grep -i parsed {engine_log(ctx)}")
        parsed: Dict[str, int] = Counter(
            loader_table(line) for line in non_empty(result.lines)
        )

        self._header(ctx, "check, that all parsed entries are known already")
        ctx.record(
            FIND_PARSED_IN_KNOWN,
            find_observed_in_expected(
                outcome, parsed, known, "table is known", "table is unknown"
            ),
        )

        self._header(ctx, "check, that all known entries are found in the log")
        ctx.record(
            FIND_KNOWN_IN_PARSED,
            find_expected_in_observed(
                outcome, parsed, known, "exists in today's log", "absent in today's log"
            ),
        )

        self._header(ctx, "compares the number of parsed entries with required one")
        ctx.record(COMPARE_NUM_PARSED, compare_counts(outcome, parsed, known))

    @staticmethod
    def _header(ctx: CheckContext, text: str) -> None:
        ctx.writer.raw("")
        ctx.writer.raw(f"->>> {text}")
