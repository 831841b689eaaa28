"""
Tests for SMF service checks and service start time drift.
"""

from health_audit.checks import get_check
from health_audit.policy.tables import HostPolicy

from conftest import run_check


def svcs_long(
    fmri, name, state="online", enabled="true", state_time="Mon Oct 12 10:11:12 2020"
):
    return (
        f"fmri         {fmri}\n"
        f"name         {name}\n"
        f"enabled      {enabled}\n"
        f"state        {state}\n"
        f"next_state   none\n"
        f"state_time   {state_time}\n"
    )


ESM = "svc:/eniq/esm:default"
ENGINE = "svc:/eniq/engine:default"


def service_policy(services):
    return HostPolicy(
        role="eniq-engine",
        thresholds={},
        expected_sets={"CheckSrvs": services, "CheckSrvsUptime": services},
    )


class TestCheckSrvs:
    """Test cases for CheckSrvs."""

    def test_all_online(self, make_context):
        """Test that enabled and online services pass."""
        ctx = make_context(
            role="eniq-engine",
            policy=service_policy([ESM, ENGINE]),
            script={
                f"svcs -l {ESM}": svcs_long(ESM, "ESM"),
                f"svcs -l {ENGINE}": svcs_long(ENGINE, "Engine"),
            },
        )

        assert run_check(get_check("CheckSrvs"), ctx).verdict is True
        assert "\tok\ttrue/online\tESM" in ctx.writer.detailed_lines

    def test_offline_service(self, make_context):
        """Test that a maintenance state fails."""
        ctx = make_context(
            role="eniq-engine",
            policy=service_policy([ESM, ENGINE]),
            script={
                f"svcs -l {ESM}": svcs_long(ESM, "ESM"),
                f"svcs -l {ENGINE}": svcs_long(ENGINE, "Engine", state="maintenance"),
            },
        )

        assert run_check(get_check("CheckSrvs"), ctx).verdict is False
        assert "\tnok\ttrue/maintenance\tEngine" in ctx.writer.detailed_lines

    def test_unknown_service_keeps_checking(self, make_context):
        """Test that a failed svcs fails the check and the next service is still checked."""
        ctx = make_context(
            role="eniq-engine",
            policy=service_policy([ESM, ENGINE]),
            script={f"svcs -l {ENGINE}": svcs_long(ENGINE, "Engine")},
        )

        assert run_check(get_check("CheckSrvs"), ctx).verdict is False
        assert ctx.runner.commands == [f"svcs -l {ESM}", f"svcs -l {ENGINE}"]


class TestCheckSrvsUptime:
    """Test cases for start time drift detection."""

    def test_first_run_mismatches_and_writes_baseline(self, make_context):
        """Test that without a baseline every service drifts and the baseline is written."""
        ctx = make_context(
            role="eniq-engine",
            policy=service_policy([ESM]),
            script={f"svcs -l {ESM}": svcs_long(ESM, "ESM")},
        )

        assert run_check(get_check("CheckSrvsUptime"), ctx).verdict is False
        assert "\tnok\t => Mon Oct 12 10:11:12 2020\tESM" in ctx.writer.detailed_lines
        baseline = ctx.baseline_dir / "eniq-engine.srvs"
        assert baseline.read_text() == f"{ESM} Mon Oct 12 10:11:12 2020\n"

    def test_second_run_is_stable(self, make_context):
        """Test that an unchanged start time passes on the next run."""
        script = {f"svcs -l {ESM}": svcs_long(ESM, "ESM")}
        first = make_context(role="eniq-engine", policy=service_policy([ESM]), script=script)
        run_check(get_check("CheckSrvsUptime"), first)

        second = make_context(role="eniq-engine", policy=service_policy([ESM]), script=script)

        assert run_check(get_check("CheckSrvsUptime"), second).verdict is True
        assert (
            "\tok\tMon Oct 12 10:11:12 2020 == Mon Oct 12 10:11:12 2020\tESM"
            in second.writer.detailed_lines
        )

    def test_restart_detected_once(self, make_context):
        """Test that a restart is reported once and then becomes the new baseline."""
        policy = service_policy([ESM])
        before = {f"svcs -l {ESM}": svcs_long(ESM, "ESM")}
        after = {f"svcs -l {ESM}": svcs_long(ESM, "ESM", state_time="Sun Mar 10 03:00:00 2024")}

        baseline_run = make_context(role="eniq-engine", policy=policy, script=before)
        run_check(get_check("CheckSrvsUptime"), baseline_run)

        restarted = make_context(role="eniq-engine", policy=policy, script=after)
        assert run_check(get_check("CheckSrvsUptime"), restarted).verdict is False
        assert (
            "\tnok\tMon Oct 12 10:11:12 2020 => Sun Mar 10 03:00:00 2024\tESM"
            in restarted.writer.detailed_lines
        )

        settled = make_context(role="eniq-engine", policy=policy, script=after)
        assert run_check(get_check("CheckSrvsUptime"), settled).verdict is True

    def test_unreachable_service_dropped_from_baseline(self, make_context):
        """Test that a service without status is not written to the baseline."""
        ctx = make_context(
            role="eniq-engine",
            policy=service_policy([ESM, ENGINE]),
            script={f"svcs -l {ENGINE}": svcs_long(ENGINE, "Engine")},
        )

        run_check(get_check("CheckSrvsUptime"), ctx)

        text = (ctx.baseline_dir / "eniq-engine.srvs").read_text()
        assert ESM not in text
        assert ENGINE in text


class TestCheckHostUptime:
    """Test cases for CheckHostUptime."""

    def test_long_uptime(self, make_context):
        """Test a host up for weeks."""
        ctx = make_context(
            role="eniq-engine",
            script={"uptime": " 10:01am  up 20 day(s),  3:12,  2 users,  load average: 0.1\n"},
        )

        assert run_check(get_check("CheckHostUptime"), ctx).verdict is True
        assert "\tok\tup 20 day(s)" in ctx.writer.detailed_lines

    def test_recent_restart(self, make_context):
        """Test a host restarted this week."""
        ctx = make_context(
            role="eniq-engine",
            script={"uptime": " 10:01am  up 2 day(s),  3:12,  2 users,  load average: 0.1\n"},
        )

        assert run_check(get_check("CheckHostUptime"), ctx).verdict is False
