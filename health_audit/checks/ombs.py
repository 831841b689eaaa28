"""
OMBS (NetBackup) checks.
"""

from .base import Check, CheckContext, CheckOutcome, runs_today, unique
from .parsers import fields_of, line_at, non_empty
from .registry import register_check
from ..policy.tables import PolicyError

NETBACKUP_ADMIN = "/usr/openv/netbackup/bin/admincmd"


@register_check
class CheckNrOfBackupPolicies(Check):
    name = "CheckNrOfBackupPolicies"
    description = (
        "checks if the number of backup policies on the OMBS is consistent with the "
        "required one"
    )

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute(f"{NETBACKUP_ADMIN}/bppllist -L")
        found = len(result.lines)
        if rule.passes(found):
            outcome.ok("the number of policies is consistent with the required one")
        elif found > rule.limit:
            outcome.nok(f"looks like new policy was added, {found} instead of {rule.limit}")
        else:
            outcome.nok(f"looks like policy was deleted, {found} instead of {rule.limit}")


@register_check
class CheckNetBackupClients(Check):
    """Every client in /etc/hosts on the backup networks must answer bpcd."""

    name = "CheckNetBackupClients"
    description = "checks connection between OMBS and NetBackup's clients"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        excluded = set(ctx.policy.setting("netbackup_excluded_clients", []))
        result = await ctx.execute("egrep '192|172' /etc/hosts | awk '{print $2}'")
        clients = unique(
            line.strip() for line in non_empty(result.lines) if line.strip() not in excluded
        )
        for client in clients:
            probe = await ctx.execute(
                f"{NETBACKUP_ADMIN}/bptestbpcd -connect_timeout 5 -client {client}",
                check=False,
            )
            outcome.judge(probe.success, f"{client} connected", f"{client} disconnected")


@register_check
class CheckBackupPoliciesSchedExec(Check):
    """
    Policies scheduled for today must have a successful backup of today.

    The last successful backup script prints the backup as the last-but-one
    line: start date and time, end date and time, size, ..., type, policy.
    """

    name = "CheckBackupPoliciesSchedExec"
    description = "checks if the required backup policies in scheduler were executed"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        schedule = ctx.policy.schedule(self.name)
        script = ctx.policy.setting("last_backup_script")
        if not script:
            raise PolicyError(f"role '{ctx.role}' has no last_backup_script setting")

        now = ctx.now
        today = f"{now:%Y-%m-%d}"
        scheduled = [policy for policy, days in schedule.items() if runs_today(days, now)]
        if not scheduled:
            outcome.note(f"no backup policies are scheduled for {now:%A}")
            return

        for policy in scheduled:
            result = await ctx.execute(f"{script} -p {policy}")
            f = fields_of(line_at(result.lines, -2, "last backup line"), 8)
            outcome.judge(
                f[2] == today,
                f"policy {f[7]} with type {f[6]} was successfully executed on {f[4]}",
                f"{f[0]}T{f[1]} - {f[2]}T{f[3]} {f[6]} {f[4]}\t{f[7]}",
            )
