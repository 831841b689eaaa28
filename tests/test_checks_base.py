"""
Tests for the check execution contract in health_audit.checks.base.
"""

from datetime import datetime

import pytest

from health_audit.audit.report import ReportWriter
from health_audit.checks import (
    COMMAND_FAILED,
    CHECK_REGISTRY,
    Check,
    CheckOutcome,
    OnError,
    OutputShapeError,
    compare_counts,
    evaluate_threshold,
    find_expected_in_observed,
    find_observed_in_expected,
    get_check,
    list_checks,
    register_check,
    runs_today,
)
from health_audit.policy.tables import Comparator, ThresholdRule

from conftest import run_check


class EchoCheck(Check):
    name = "EchoCheck"
    description = "echoes a command"

    async def run(self, ctx, outcome):
        result = await ctx.execute("echo hello")
        outcome.ok(result.output.strip())


class AbsenceCheck(Check):
    name = "AbsenceCheck"
    description = "nothing found is success"
    on_error = OnError.PASS
    absence_message = "nothing found"

    async def run(self, ctx, outcome):
        await ctx.execute("grep needle haystack")
        outcome.nok("needle found")


class ShapeCheck(Check):
    name = "ShapeCheck"

    async def run(self, ctx, outcome):
        raise OutputShapeError("expected 11 lines")


class CrashingCheck(Check):
    name = "CrashingCheck"

    async def run(self, ctx, outcome):
        raise RuntimeError("boom")


class NeverCheck(Check):
    name = "NeverCheck"

    def applies(self, ctx):
        return False

    async def run(self, ctx, outcome):
        raise AssertionError("must not run")


class TestCheckExecute:
    """Test cases for Check.execute()."""

    def test_records_one_verdict(self, make_context):
        """Test that a passing check records exactly one verdict."""
        ctx = make_context(script={"echo hello": "hello\n"})

        result = run_check(EchoCheck(), ctx)

        assert result.verdict is True
        assert ctx.store.items() == [("EchoCheck", True)]
        assert result.details == ("", "->> echo hello", "\tok\thello")

    def test_command_failure_fails(self, make_context):
        """Test that a failed command fails the check with the standard message."""
        ctx = make_context(script={})

        result = run_check(EchoCheck(), ctx)

        assert result.verdict is False
        assert f"\tnok\t{COMMAND_FAILED}" in ctx.writer.detailed_lines

    def test_absence_is_success(self, make_context):
        """Test that a failed grep passes a check declared absence-is-success."""
        ctx = make_context(script={"grep needle": ("", False)})

        result = run_check(AbsenceCheck(), ctx)

        assert result.verdict is True
        assert ctx.writer.detailed_lines[-1] == "\tok\tnothing found"

    def test_absence_check_with_findings(self, make_context):
        """Test that the same check fails when the grep finds something."""
        ctx = make_context(script={"grep needle": "needle\n"})

        assert run_check(AbsenceCheck(), ctx).verdict is False

    def test_shape_error_is_a_failed_verdict(self, make_context):
        """Test that malformed output fails the check instead of raising."""
        ctx = make_context()

        result = run_check(ShapeCheck(), ctx)

        assert result.verdict is False
        assert ctx.store.get("ShapeCheck") is False
        assert "expected 11 lines" in ctx.writer.detailed_lines[-1]

    def test_unexpected_exception_is_contained(self, make_context):
        """Test that a crashing check is recorded as failed."""
        ctx = make_context()

        assert run_check(CrashingCheck(), ctx).verdict is False
        assert "RuntimeError" in ctx.writer.detailed_lines[-1]

    def test_missing_policy_entry(self, make_context):
        """Test that a check without its threshold fails with a policy message."""
        ctx = make_context(role="uas", script={"du -sh /home/*": "12G\t/home/jdoe\n"})

        result = run_check(get_check("CheckHomeSU"), ctx)

        assert result.verdict is False
        assert "policy is incomplete" in ctx.writer.detailed_lines[-1]

    def test_skipped_check_records_nothing(self, make_context):
        """Test that a check which does not apply leaves no verdict."""
        ctx = make_context()

        assert run_check(NeverCheck(), ctx) is None
        assert len(ctx.store) == 0
        assert ctx.writer.detailed_lines == ["", "->> NeverCheck skipped"]
        assert ctx.runner.commands == []


class TestThresholds:
    """Test cases for evaluate_threshold()."""

    def test_strict_and_inclusive_boundary(self):
        """Test that the comparator of the rule decides the boundary."""
        outcome = CheckOutcome(ReportWriter())
        strict = ThresholdRule(limit=40, comparator=Comparator.LT, unit="%")
        inclusive = ThresholdRule(limit=40, comparator=Comparator.LE, unit="%")

        assert evaluate_threshold(outcome, 40, inclusive, "/") is True
        assert outcome.passed is True
        assert evaluate_threshold(outcome, 40, strict, "/") is False
        assert outcome.passed is False

    def test_sybdata_usage(self):
        """Test the sybdata disk at and above its 91% limit."""
        rule = ThresholdRule(limit=91, comparator=Comparator.LE, unit="%")

        at_limit = CheckOutcome(ReportWriter())
        evaluate_threshold(at_limit, 91, rule, "/ossrc/sybdev/oss/sybdata")
        assert at_limit.passed is True
        assert at_limit.writer.detailed_lines == ["\tok\t91%\t/ossrc/sybdev/oss/sybdata"]

        above = CheckOutcome(ReportWriter())
        evaluate_threshold(above, 92, rule, "/ossrc/sybdev/oss/sybdata")
        assert above.passed is False
        assert above.writer.detailed_lines == ["\tnok\t92%\t/ossrc/sybdev/oss/sybdata"]

    def test_warn_does_not_fail(self):
        """Test that a warning line keeps the outcome passed."""
        outcome = CheckOutcome(ReportWriter())
        outcome.warn("two boot environments")

        assert outcome.passed is True
        assert outcome.writer.detailed_lines == ["\tnok\ttwo boot environments"]


class TestSetReconciliation:
    """Test cases for set and count comparison helpers."""

    def test_observed_in_expected(self):
        """Test that unknown observed items fail."""
        outcome = CheckOutcome(ReportWriter())

        assert find_observed_in_expected(outcome, ["a", "x"], ["a", "b"]) is False
        assert outcome.writer.detailed_lines == ["\tok\tknown\ta", "\tnok\tunknown\tx"]

    def test_expected_in_observed(self):
        """Test that missing expected items fail."""
        outcome = CheckOutcome(ReportWriter())

        assert find_expected_in_observed(outcome, ["a", "x"], ["a", "b"]) is False
        assert outcome.writer.detailed_lines == [
            "\tok\tfound\ta",
            "\tnok\texpected but absent\tb",
        ]

    def test_both_directions_are_independent(self):
        """Test that an exact match passes both ways."""
        outcome = CheckOutcome(ReportWriter())

        assert find_observed_in_expected(outcome, ["a", "b"], ["b", "a"]) is True
        assert find_expected_in_observed(outcome, ["a", "b"], ["b", "a"]) is True
        assert outcome.passed is True

    def test_compare_counts(self):
        """Test minimum occurrence counts."""
        outcome = CheckOutcome(ReportWriter())

        observed = {"DC_E_RBS": 25, "DIM_E_CN": 0}
        expected = {"DC_E_RBS": 25, "DIM_E_CN": 1}

        assert compare_counts(outcome, observed, expected) is False
        assert outcome.writer.detailed_lines == [
            "\t\thave/must\t\ttable",
            "\tok\t25/25\t\tDC_E_RBS",
            "\tnok\t0/1\t\tDIM_E_CN",
        ]


class TestSchedules:
    """Test cases for runs_today()."""

    def test_weekday_expression(self):
        """Test matching weekday names."""
        tuesday = datetime(2024, 3, 12)
        assert runs_today("Tuesday, Thursday, Saturday", tuesday) is True
        assert runs_today("Sunday", tuesday) is False
        assert runs_today("All", tuesday) is True


class TestRegistry:
    """Test cases for the check registry."""

    def test_builtin_checks_registered(self):
        """Test that importing the package registers the checks."""
        for name in (
            "CheckDisksSU",
            "DeepCheckETLC",
            "EnmNativeHC",
            "CheckBackupPoliciesSchedExec",
        ):
            assert name in CHECK_REGISTRY
        assert list_checks() == sorted(CHECK_REGISTRY)

    def test_get_check_instantiates(self):
        """Test looking up a check by name."""
        check = get_check("CheckBeadm")
        assert check.name == "CheckBeadm"
        assert check.description

    def test_unknown_check(self):
        """Test that an unknown name raises KeyError."""
        with pytest.raises(KeyError):
            get_check("CheckNothing")

    def test_duplicate_name_rejected(self):
        """Test that a second class cannot take a registered name."""

        class Impostor(Check):
            name = "CheckBeadm"

            async def run(self, ctx, outcome):
                pass

        with pytest.raises(ValueError):
            register_check(Impostor)

    def test_nameless_check_rejected(self):
        """Test that a check without a name cannot be registered."""

        class Nameless(Check):
            async def run(self, ctx, outcome):
                pass

        with pytest.raises(ValueError):
            register_check(Nameless)
