"""
Disk, file and session checks.
"""

import math

from ..policy.tables import PolicyError
from .base import (
    Check,
    CheckContext,
    CheckOutcome,
    OnError,
    evaluate_threshold,
)
from .parsers import (
    OutputShapeError,
    column,
    field_at,
    fields_of,
    line_at,
    non_empty,
    parse_du_line,
    parse_percent,
    parse_percent_path,
    parse_size,
    parse_table,
    zpool_errors,
)
from .registry import register_check


@register_check
class CheckDisksSU(Check):
    name = "CheckDisksSU"
    description = "checks file system disk space usage"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute("df -h | awk '{print $5$1}'")
        for line in non_empty(result.lines):
            try:
                usage, disk = parse_percent_path(line)
            except OutputShapeError:
                # header and pseudo file systems without a capacity
                continue
            evaluate_threshold(outcome, usage, rule, disk)


@register_check
class CheckOssDisksSU(Check):
    """Per mount point usage of the Veritas volumes, each with its own limit."""

    name = "CheckOssDisksSU"
    description = "checks OSS-RC general disks space usage"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("df -lh | egrep '^/dev/vx/dsk' | awk '{print $5$6}'")
        for line in non_empty(result.lines):
            usage, path = parse_percent_path(line)
            try:
                rule = ctx.policy.item_threshold(self.name, path)
            except PolicyError:
                outcome.nok(f"{usage}%\t{path}\tno threshold configured")
                continue
            evaluate_threshold(outcome, usage, rule, path)


class DirectorySizeCheck(Check):
    """
    Judges ``du -sh`` entries of at least one gigabyte.

    Sizes are floored to whole gigabytes before comparison, smaller entries are
    not reported.
    """

    pattern = ""

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute(f"du -sh {self.pattern}")
        for line in non_empty(result.lines):
            size_text, path = parse_du_line(line)
            size = parse_size(size_text, "G")
            if size < 1:
                continue
            evaluate_threshold(outcome, math.floor(size), rule, path)

        if outcome.passed:
            outcome.ok("there is no big directories found")


@register_check
class CheckHomeSU(DirectorySizeCheck):
    name = "CheckHomeSU"
    description = "checks home directory space usage"
    pattern = "/home/*"


@register_check
class CheckMoshellLogSU(DirectorySizeCheck):
    name = "CheckMoshellLogSU"
    description = "checks moshell logs directory space usage"
    pattern = "/var/opt/ericsson/amos/moshell_logfiles/*"


@register_check
class CheckWtmpx(Check):
    name = "CheckWtmpx"
    description = (
        "checks a log size of all connections to the server, the log should not "
        "be above 1GB, otherwise backup and empty the file"
    )

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute("du -sh /var/adm/wtmpx")
        size_text, _ = parse_du_line(line_at(non_empty(result.lines), 0, "du line"))
        limit = f"{rule.limit}{rule.unit}B"
        outcome.judge(
            rule.passes(parse_size(size_text, rule.unit or "G")),
            f"the log size({size_text}) of all server connection is less than {limit}",
            f"the log size({size_text}) of all server connection is more than {limit}",
        )


@register_check
class CheckSyLogSize(Check):
    name = "CheckSyLogSize"
    description = "checks SMF logs size for Sybase, files have to be less than 1MB"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        limit = f"{rule.limit}{rule.unit}B"
        result = await ctx.execute("du -sh /var/svc/log/ericsson-eric_3pp-sybase_[lp]*")
        for line in non_empty(result.lines):
            size_text, path = parse_du_line(line)
            outcome.judge(
                rule.passes(parse_size(size_text, rule.unit or "M")),
                f"the size({size_text}) of {path} is less than {limit}",
                f"the size({size_text}) of {path} is more than {limit}",
            )


@register_check
class CheckMountingOk(Check):
    name = "CheckMountingOk"
    description = "checks, if all required disk are mounted properly"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("df -kh", check=False)
        outcome.judge(result.success, "all disks mounted properly", "error in disks mounting")


@register_check
class CheckBeadm(Check):
    """
    More than one boot environment usually means an upgrade is being prepared,
    so the finding is reported but does not fail the check.
    """

    name = "CheckBeadm"
    description = (
        "checks the list of all existing ZFS Boot Environments (BEs), there should "
        "be only one if no system upgrade is being prepared"
    )

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute("beadm list")
        if rule.passes(len(result.lines)):
            outcome.ok("only one Boot Environment found")
        else:
            outcome.warn("the ZFS pool has more than one Boot Environment")


@register_check
class CheckSnapshots(Check):
    name = "CheckSnapshots"
    description = 'checks all available snapshots, autocreated snapshots has "snss" in name'

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        prefix = ctx.policy.marker(self.name)
        result = await ctx.execute(
            f"bash /eniq/bkup_sw/bin/prep_eniq_snapshots.bsh -u -N | grep {ctx.now.year}"
        )
        for line in non_empty(result.lines):
            outcome.judge(line.startswith(prefix), line)


def _zpool_rows(lines):
    rows = parse_table(lines)
    if not rows:
        raise OutputShapeError("zpool list shows no pools")
    return rows


@register_check
class CheckZfsPoolStatus(Check):
    name = "CheckZfsPoolStatus"
    description = "checks the status of ZFS pool file systems"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("/usr/sbin/zpool list")
        for row in _zpool_rows(result.lines):
            pool, health = column(row, "NAME"), column(row, "HEALTH")
            outcome.judge(health == "ONLINE", f"{health} - {pool}")


@register_check
class CheckZfsPoolSU(Check):
    name = "CheckZfsPoolSU"
    description = "checks ZFS pool space usage"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("/usr/sbin/zpool list")
        for row in _zpool_rows(result.lines):
            pool = column(row, "NAME")
            usage = parse_percent(column(row, "CAP"))
            try:
                rule = ctx.policy.item_threshold(self.name, pool)
            except PolicyError:
                outcome.nok(f"{usage}%\t{pool}\tno threshold configured")
                continue
            evaluate_threshold(outcome, usage, rule, pool)


@register_check
class CheckZfsPoolErrors(Check):
    name = "CheckZfsPoolErrors"
    description = "checks if there are any error in ZFS pool"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("/usr/sbin/zpool status | egrep 'pool:|errors'")
        for pool, errors in zpool_errors(result.lines):
            outcome.judge(
                errors == "No known data errors",
                f"no errors\t{pool}",
                f"{pool} - {errors}",
            )


@register_check
class CheckFailProc(Check):
    name = "CheckFailProc"
    description = "checks existence of failed processes"
    on_error = OnError.PASS
    absence_message = "no any failed process temp files"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("ls -l /var/tmp/failed_process")
        listing = line_at(non_empty(result.lines), 0, "file listing")
        outcome.nok(field_at(listing, -1, "file name"))


@register_check
class CheckCoreFiles(Check):
    name = "CheckCoreFiles"
    description = "checks all core files, files should not exists"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("ls -erth /var/share/cores")
        listing = non_empty(result.lines)
        # "total 0" alone
        if len(listing) <= 1:
            outcome.ok("no any core files")
            return

        outcome.nok("core files found")
        for line in listing:
            outcome.note(line)


@register_check
class CheckOutOfMem(Check):
    name = "CheckOutOfMem"
    description = "checks all out of memory dump files, files should not exists"
    on_error = OnError.PASS
    absence_message = "no any out of memory dump files"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        result = await ctx.execute("ls -erth /ossrc/upgrade/*/*")
        outcome.nok("out of memory dump files found")
        for line in result.lines:
            if len(line.split()) <= 2:
                continue
            f = fields_of(line, 10)
            outcome.note(f"{f[2]}\t{f[8]} {f[5]},{f[6]}\t{f[9]}")


@register_check
class KillOldSessions(Check):
    """
    Lists login sessions not started today and kills them.

    Every old session fails the check, whether or not the kill succeeds.
    """

    name = "KillOldSessions"
    description = "checks users session and kills the old one"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        now = ctx.now
        result = await ctx.execute(
            f"who -uH | perl -nE 'print \"$_\", unless /{now:%b}\\s+{now.day}/;'"
        )
        sessions = non_empty(result.lines)[1:]
        if not sessions:
            outcome.ok("no any old sessions")
            return

        pids = []
        for line in sessions:
            pids.append(field_at(line, -2, "pid"))
            outcome.nok(line)

        for pid in pids:
            killed = await ctx.execute(f"kill -9 {pid}", check=False)
            outcome.judge(
                killed.success, "session successfully killed", "killing of session is failed"
            )
