"""
ENM management server checks.

Most of them wrap an action of the native ``enm_healthcheck.sh`` and copy its
verbose output to the report; only a failed run fails them.
"""

from .base import Check, CheckContext, CheckOutcome, PassThroughCheck
from .registry import register_check

ENM_HEALTHCHECK = "/opt/ericsson/enminst/bin/enm_healthcheck.sh"

# every scripting and amos VM listed in /etc/hosts
FOR_EACH_SCP_VM = (
    "for i in $(cat /etc/hosts | egrep \"scp-.-(amos|scripting)\\b\" | awk '{print $2}'); "
    "do ssh -i /root/.ssh/vm_private_key cloud-user@${i} '%s'%s; done"
)


def _action_check(name: str, action: str, description: str):
    cls = type(
        name,
        (PassThroughCheck,),
        {
            "__doc__": f"Runs the {action} action of the native ENM health check.",
            "__module__": __name__,
            "name": name,
            "description": description,
            "command": f"{ENM_HEALTHCHECK} --action {action} --verbose",
        },
    )
    return register_check(cls)


CheckHwResources = _action_check(
    "CheckHwResources",
    "hw_resources_healthcheck",
    "checks status of ENM RAM/CPU required to run all assigned VM's on a Blade",
)
CheckNas = _action_check("CheckNas", "nas_healthcheck", "checks state of VA NAS in ENM")
CheckStoragePool = _action_check(
    "CheckStoragePool", "storagepool_healthcheck", "checks the SAN StoragePool usage"
)
CheckStaleMount = _action_check(
    "CheckStaleMount", "stale_mount_healthcheck", "checks for stale mounts on MS and Peer Nodes"
)
CheckNodeFs = _action_check(
    "CheckNodeFs", "node_fs_healthcheck", "checks Filesystem Usage on MS, NAS and Peer Nodes"
)
CheckSystemService = _action_check(
    "CheckSystemService",
    "system_service_healthcheck",
    "checks status of key lsb services on each Blade",
)
CheckVcsCluster = _action_check(
    "CheckVcsCluster",
    "vcs_cluster_healthcheck",
    "checks the state of the VCS clusters on the deployment",
)
CheckVcsLltHeartbeat = _action_check(
    "CheckVcsLltHeartbeat",
    "vcs_llt_heartbeat_healthcheck",
    "checks state of VCS llt heartbeat network interfaces on the deployment",
)
CheckVcsServiceGroup = _action_check(
    "CheckVcsServiceGroup",
    "vcs_service_group_healthcheck",
    "checks state of VCS service groups on the deployment",
)
CheckConsul = _action_check("CheckConsul", "consul_healthcheck", "checks status of consul cluster")
CheckMultipathActive = _action_check(
    "CheckMultipathActive",
    "multipath_active_healthcheck",
    "checks paths to disks on DB nodes are all accessible",
)
CheckPuppetEnabled = _action_check(
    "CheckPuppetEnabled", "puppet_enabled_healthcheck", "checks Puppet is enabled on all nodes"
)
CheckSanAlert = _action_check(
    "CheckSanAlert", "san_alert_healthcheck", "checks if there are critical alerts on the SAN"
)
CheckMdt = _action_check("CheckMdt", "mdt_healthcheck", "checks MDT status")


@register_check
class EnmNativeHC(PassThroughCheck):
    """The full native health check, output copied without indentation."""

    name = "EnmNativeHC"
    description = "runs native full healthcheck recommended by Ericsson and analyze the output"
    command = f"{ENM_HEALTHCHECK} --verbose"
    indent = ""


@register_check
class CheckBashrc(Check):
    name = "CheckBashrc"
    description = "checks /etc/bashrc file for custom settings"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        result = await ctx.execute(
            FOR_EACH_SCP_VM % ('grep "if.*nodesAliases" /etc/bashrc', "")
        )
        outcome.judge(
            rule.passes(len(result.lines)),
            "custom settings are found in the bashrc",
            "custom settings not found in the bashrc",
        )


@register_check
class CheckNodesFilesUpdate(Check):
    """Each site file must have been updated today on every scripting VM."""

    name = "CheckNodesFilesUpdate"
    description = "checks that ipdatabase and nodesAliases files are up to date"

    async def run(self, ctx: CheckContext, outcome: CheckOutcome) -> None:
        rule = ctx.policy.threshold(self.name)
        today = f"{ctx.now:%Y-%m-%d}"
        result = await ctx.execute(
            FOR_EACH_SCP_VM
            % ("ls -l --time-style=long-iso /home/shared/common/sitefiles/ | grep -v backup", " ")
        )
        for site_file in ctx.policy.expected_set(self.name):
            found = sum(1 for line in result.lines if site_file in line and today in line)
            outcome.judge(rule.passes(found), f"found {found} {site_file} of {today}")
