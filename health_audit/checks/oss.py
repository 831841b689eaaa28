"""
OSS-RC master server checks: managed components, Sybase and Versant
databases, Veritas cluster and the CIF logs.
"""

from collections import Counter

from .base import (
    COMMAND_FAILED,
    Check,
    CheckContext,
    CheckOutcome,
    OnError,
    evaluate_threshold,
    runs_today,
    unique,
)
from .parsers import (
    OutputShapeError,
    dotted_result,
    field_at,
    fields_of,
    is_ipv4,
    line_at,
    non_empty,
    parse_percent,
    section,
    value_after_colon,
)
from .registry import register_check

CIF_LOG = "/opt/ericsson/nms_cif_sm/bin/log"
VERSANT_ADMIN = "su - nmsadm -c /ericsson/versant/bin/vrsnt_admin.sh"
SECURITY_ON = "Currently set to ON"


def menu(command: str, *answers: str) -> str:
    """Feed answers to an interactive menu script through a here-document."""
    return "\n".join([f"{command} <<EOF", *answers, "EOF"])


@register_check
class CheckMCs(Check):
    name = "CheckMCs"
    description = "checks states of Managed Components of OSS-RC"
    on_error = OnError.PASS
    absence_message = "no any failed MCs"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute('/opt/ericsson/bin/smtool -l | egrep -v "started|unlicensed"')
        for line in non_empty(result.lines):
            f = fields_of(line, 2)
            outcome.nok(f"{f[0]}({f[1]})")
        outcome.fail()


@register_check
class CheckDisks(Check):
    name = "CheckDisks"
    description = "analyses the output of command vxprint and shows disks failed states"
    on_error = OnError.PASS
    absence_message = "no any failed disks"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute('vxprint | egrep -i "iofail|recover"')
        for line in non_empty(result.lines):
            f = fields_of(line, 7)
            outcome.nok(f"{{{f[0]}}}-{{{f[1]}}}-{{{f[2]}}} => {{{f[3]}|{f[6]}}}")
        outcome.fail()


@register_check
class CheckSyDb(Check):
    name = "CheckSyDb"
    description = (
        "checks the remaining space for the OSS-RC Sybase databases and their "
        "transaction log"
    )

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute(
            "su - sybase -c /ericsson/syb/util/db_check.sh | egrep ' system'"
        )
        for line in non_empty(result.lines[1:]):
            f = fields_of(line, 6)
            evaluate_threshold(outcome, parse_percent(f[5]), rule, f[0])


@register_check
class CheckVrstDataMon(Check):
    name = "CheckVrstDataMon"
    description = "checks the status of Versant database monitor"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("svcs versant_log_monitor")
        f = fields_of(line_at(result.lines, 1, "service line"), 3)
        state, fmri = f[0], f[2]
        outcome.judge(state == "online", fmri, f"{fmri}({state})")


@register_check
class CheckDBA(Check):
    """Reads the eleven result lines of the DBA tools database health check."""

    name = "CheckDBA"
    description = "runs OSS-RC's native database healthcheck"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute(
            menu("su - sybase -c /ericsson/syb/util/dba_tools", "13", "", "0")
        )
        for line in section(result.lines, 42, 53, "database check results"):
            check, verdict = dotted_result(line)
            outcome.judge(verdict == "OK!", check)


@register_check
class CheckVrstDb(Check):
    """
    Versant databases must be in Multi-user mode and Online.

    The admin menu prints the six databases with their mode on lines 48-53 and
    their status, in the same order, from line 57 on.
    """

    name = "CheckVrstDb"
    description = "checks mode and status of all versant databases"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute(menu(VERSANT_ADMIN, "1", "", "0"))
        lines = result.lines
        for i, row in enumerate(section(lines, 48, 54, "database modes")):
            f = fields_of(row, 3)
            database, mode = f[0], f[2]
            status = field_at(line_at(lines, i + 57, "database status"), 2, "status")
            outcome.judge(
                mode == "Multi-user" and status == "Online",
                f"{mode}, {status} - {database}",
            )


@register_check
class CheckVrstDbSU(Check):
    name = "CheckVrstDbSU"
    description = "checks space usage of all versant databases"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute(menu(VERSANT_ADMIN, "6", "", "0"))
        for row in section(result.lines, 49, 55, "database usage"):
            f = fields_of(row, 6)
            evaluate_threshold(outcome, parse_percent(f[5]), rule, f"space usage of {f[0]}")


@register_check
class MonVrstDb(Check):
    """Compares the newest critical alarm timestamp with the acknowledged one."""

    name = "MonVrstDb"
    description = "checks if new critical alarms of versant databases appeared"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        acknowledged = ctx.policy.marker(self.name)
        result = await ctx.execute(
            menu(VERSANT_ADMIN, "16", "all", "CRITICAL", "q", "q", "", "0")
        )
        stamps = [line for line in result.lines if line.startswith("***** ")]
        if not stamps:
            raise OutputShapeError("no critical alarm timestamps in the alarm list")
        outcome.judge(
            stamps[-1] == acknowledged,
            "no new critical alarms of versant databases found",
            "new critical alarm of versant databases appeared",
        )


@register_check
class CheckSecurity(Check):
    name = "CheckSecurity"
    description = "checks security status of CORBA and RMI/JMS"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("/opt/ericsson/secpf/scripts/bin/security.ksh -status")
        corba = line_at(result.lines, 1, "CORBA status").strip()
        jms = line_at(result.lines, 4, "RMI/JMS status").strip()
        if corba == SECURITY_ON and jms == SECURITY_ON:
            outcome.ok("security status")
            return

        outcome.nok("security status")
        for line in non_empty(result.lines):
            outcome.note(line)


@register_check
class CheckVeritas(Check):
    """
    Service groups that are not ONLINE must be the standby halves.

    The policy lists ``<group prefix>:<system>`` pairs: a group starting with
    the prefix may be offline on a system whose name contains the second part.
    """

    name = "CheckVeritas"
    description = "checks status of Veritas Cluster Servers"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        standby = [
            tuple(entry.split(":", 1)) for entry in ctx.policy.expected_set(self.name)
        ]
        result = await ctx.execute("/opt/VRTSvcs/bin/hagrp -state | grep State | grep -v ONLINE")
        for line in non_empty(result.lines):
            f = fields_of(line, 4)
            group, system, state = f[0], f[2], f[3]
            expected = any(
                group.startswith(prefix) and node in system for prefix, node in standby
            )
            outcome.judge(expected, f"{group}\t{state} {system}")


@register_check
class CheckSyDump(Check):
    name = "CheckSyDump"
    description = "checks for the occurrence of a Sybase Configurable Shared Memory Dump"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("su - sybase -c /ericsson/syb/conf/csmd_check")
        for line in result.lines:
            if "csmd" in line:
                outcome.nok("Sybase Configurable Shared Memory Dump found")
                outcome.note(line)
                return
        outcome.ok("no any Sybase Configurable Shared Memory Dump")


@register_check
class CheckSyErrLog(Check):
    name = "CheckSyErrLog"
    description = (
        "checks sybase error log, severity level up to 16 are caused by user mistakes"
    )
    on_error = OnError.PASS
    absence_message = "no errors in sybase errorlog"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute(
            "grep error /var/opt/sybase/sybase/log/masterdataservice.ERRORLOG"
            f" | grep {ctx.now:%Y/%m/%d}"
        )
        outcome.nok("there are errors in masterdataservice.ERRORLOG")
        for line in result.lines:
            outcome.note(line)


@register_check
class CheckSyBackLog(Check):
    """Runs only on the weekday the Sybase backup is scheduled for."""

    name = "CheckSyBackLog"
    description = (
        "checks sybase backup log, the backup of Sybase database has to be "
        "executed every Sunday"
    )
    default_schedule = {"masterdataservice": "Sunday"}

    def applies(self, ctx: CheckContext) -> bool:
        schedule = ctx.policy.schedules.get(self.name, self.default_schedule)
        return any(runs_today(days, ctx.now) for days in schedule.values())

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        now = ctx.now
        result = await ctx.execute(
            "cat /var/opt/sybase/sybase/log/masterdataservice_BACKUP.ERRORLOG"
            f" | perl -nE 'print $_, if /{now:%b}\\h+{now.day}/'"
        )
        entries = len(result.lines)
        outcome.judge(
            rule.passes(entries),
            f"sybase backup was successfully executed({entries})",
            "looks like sybase backup was failed",
        )


class CifLogMonitor(Check):
    """
    Critical (severity 3) events of today in one of the CIF logs.

    Any event fails the check; the identifying lines of each event are
    copied to the report.
    """

    log_type = ""
    clean_message = ""
    found_message = ""
    event_heads = ("FDN", "Sho", "***", "Add")

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute(
            f"{CIF_LOG} -type {self.log_type} -filter "
            f"\"severity_level = 3 AND time_stamp >= '{ctx.now:%Y-%m-%d}'\""
        )
        if not result.lines:
            outcome.ok(self.clean_message)
            return

        outcome.nok(self.found_message)
        for line in result.lines:
            if line[:3] in self.event_heads:
                outcome.note(line)


@register_check
class MonErrLog(CifLogMonitor):
    name = "MonErrLog"
    description = 'monitors critical events from CIF "ERROR LOG" at today'
    log_type = "error"
    clean_message = "there is no critical errors in CIF log at today"
    found_message = "check critical errors of CIF log"


@register_check
class MonNetLog(CifLogMonitor):
    name = "MonNetLog"
    description = 'monitors critical events from "NETWORK_STATUS LOG"'
    log_type = "security"
    clean_message = "there is no critical security events in CIF log at today"
    found_message = "check critical security events of CIF log"


@register_check
class MonConfigExports(Check):
    """Counts today's export jobs per owner. Owners in the policy set are exempt."""

    name = "MonConfigExports"
    description = 'monitors exports of configurations files in "SYSTEM EVENT LOG"'

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        exempt = set(ctx.policy.expected_set(self.name))
        result = await ctx.execute(
            f"{CIF_LOG} -type system -filter "
            "\"event_type LIKE 'COM.ERICSSON.NMS.CIF.AM.NEW_JOB' AND "
            f"time_stamp >= '{ctx.now:%Y-%m-%d}'\" | grep Owner"
        )
        jobs = Counter(value_after_colon(line) for line in non_empty(result.lines))
        for owner, count in jobs.items():
            outcome.judge(rule.passes(count) or owner in exempt, f"{count}\tjobs run by {owner}")


@register_check
class MonRestarts(Check):
    """
    Manual node restarts of today must be run by the operators in the policy.

    For every other user the restart commands are listed, and nodes given by
    IP address are resolved through the moshell ipdatabase.
    """

    name = "MonRestarts"
    description = (
        "monitors nodes manual restarts, by selecting entries which record "
        "contains 'restart' from \"COMMAND LOG\""
    )
    on_error = OnError.PASS
    absence_message = "no nodes restarts found"

    def _filter(self, ctx: CheckContext, *extra: str) -> str:
        clauses = ["command_name LIKE 'acc%restart%'", f"time_stamp >= '{ctx.now:%Y-%m-%d}'"]
        clauses.extend(extra)
        return f"{CIF_LOG} -type command -filter \"{' AND '.join(clauses)}\""

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        allowed = set(ctx.policy.expected_set(self.name))
        result = await ctx.execute(f"{self._filter(ctx)} | grep User")
        users = unique(value_after_colon(line) for line in non_empty(result.lines))
        intruders = [user for user in users if user not in allowed]
        if not intruders:
            outcome.ok("only users from NOC group executed restarts during requested period")
            return

        outcome.nok(f"{', '.join(intruders)} not allowed to execute restarts")
        for user in intruders:
            commands = await ctx.execute(
                self._filter(ctx, f"user_id LIKE '{user}'"), check=False
            )
            if not commands.success:
                outcome.nok(COMMAND_FAILED)
                continue
            for line in commands.lines:
                if line.startswith("Add"):
                    await self._report_restart(ctx, outcome, user, line)

    async def _report_restart(
        self, ctx: CheckContext, outcome: CheckOutcome, user: str, line: str
    ) -> None:
        node = field_at(line, -1, "node")
        if is_ipv4(node):
            lookup = await ctx.execute(
                f'grep "{node}" /opt/ericsson/amos/moshell/sitefiles/ipdatabase', check=False
            )
            if not lookup.success:
                outcome.nok(COMMAND_FAILED)
                return
            node = field_at(line_at(non_empty(lookup.lines), 0, "ipdatabase entry"), 0)
        outcome.note(f"Warning : {user} restarted {node}")
        outcome.note(line)


class AdjustJobsCheck(Check):
    """Status of today's scheduled adjust jobs, one line per BSC."""

    kind = ""
    completed = ""
    job_prefix = ""
    command = ""

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute(self.command.format(date=f"{ctx.now:%Y:%m:%d}"))
        for line in non_empty(result.lines):
            f = fields_of(line, 2)
            bsc, status = f[0].removeprefix(self.job_prefix), f[1]
            outcome.judge(
                status == self.completed,
                bsc,
                f"{bsc}, {self.kind} Adjust Job in status {status}",
            )


@register_check
class CheckBsmAdjusts(AdjustJobsCheck):
    name = "CheckBsmAdjusts"
    description = "checks BSM adjust-jobs execution result on OSS-RC"
    kind = "BSM"
    completed = "COMPLETED"
    command = (
        'grep "{date}" /var/opt/ericsson/ncms/js/jobs/SCHED_*BSM*/0/*/data'
        " | grep TASK | awk 'NR%2 == 0' | awk {{'print $3\" \"$6'}}"
    )


@register_check
class CheckCnaAdjusts(AdjustJobsCheck):
    name = "CheckCnaAdjusts"
    description = "checks CNA adjust-jobs execution result on OSS-RC"
    kind = "CNA"
    completed = "Completed"
    job_prefix = "SCHED_"
    command = (
        'grep "{date}.*Job" /var/opt/ericsson/ncms/js/jobs/*SCHED_*CNA*/0/*/data'
        " | awk 'NR%2 == 0' | awk -F/ '{{print $10\" \"$11}}' | awk '{{print $1\" \"$5}}'"
    )


@register_check
class ValDiagProcCache(Check):
    name = "ValDiagProcCache"
    description = (
        "validates daily output of crontab job for its successful completion for "
        "job containing - /ericsson/syb/conf/diag_proc_cache_test.ks"
    )

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("tail -4 /ericsson/syb/log/diag_proc_cache_test.txt")
        lines = result.lines
        agent = line_at(lines, 1, "JSAGENT status")
        advice = line_at(lines, 3, "cache advice")
        if "JSAGENT running - OK" in agent and "no action necessary" in advice:
            outcome.ok("validation of Diagnostics Total Procedure Cache")
            return

        outcome.nok("validation of Diagnostics Total Procedure Cache")
        for i, line in enumerate(lines):
            outcome.note(f"{i}, {line}")
