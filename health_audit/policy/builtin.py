"""
Built-in policy tables for the audited roles.

Comparators are kept as each check has always applied them. Some similar
checks use ``<`` and others ``<=``; the difference is preserved on purpose
and left for the policy owners to reconcile.
"""

from typing import Dict, List

from .tables import Comparator, HostPolicy, ThresholdRule


def _rule(limit, comparator: str, unit: str = "") -> ThresholdRule:
    return ThresholdRule(limit=limit, comparator=Comparator(comparator), unit=unit)


COMMON_THRESHOLDS: Dict[str, ThresholdRule] = {
    "CheckDisksSU": _rule(40, "<", "%"),
    "CheckHostUptime": _rule(14, ">", " day(s)"),
    # header, separator and a single boot environment
    "CheckBeadm": _rule(3, "<=", " lines"),
}

OSS_DISK_THRESHOLDS: Dict[str, ThresholdRule] = {
    path: _rule(limit, "<=", "%")
    for path, limit in {
        "/ossrc/sybdev/oss/sybdata": 91,
        "/ossrc/sybdev/sybmaster": 63,
        "/ossrc/dbdumps": 20,
        "/ossrc/sybdev/fm/fmsyblog": 95,
        "/ossrc/sybdev/pm/pmsyblog": 70,
        "/ossrc/sybdev/pm/pmsybdata": 90,
        "/ossrc/sybdev/fm/fmsybdata": 95,
        "/ossrc/sybdev/oss/syblog": 91,
        "/export": 27,
        "/ossrc/upgrade": 1,
        "/ossrc/versant": 11,
        "/ossrc/3pp": 92,
        "/var/opt/ericsson": 70,
    }.items()
}

# operators allowed to restart network elements from the OSS command log
NOC_OPERATORS: List[str] = [
    "noc_operator1",
    "noc_operator2",
    "noc_operator3",
    "noc_shift_lead",
]

ENIQ_SERVICES: Dict[str, List[str]] = {
    "eniq-coordinator": [
        "svc:/storage/NASd:default",
        "svc:/licensing/sentinel:default",
        "svc:/eniq/esm:default",
        "svc:/eniq/rmiregistry:default",
        "svc:/eniq/licmgr:default",
        "svc:/eniq/connectd:default",
        "svc:/eniq/repdb:default",
        "svc:/eniq/dwhdb:default",
        "svc:/eniq/webserver:default",
        "svc:/system/scheduler:default",
        "svc:/application/cups/scheduler:default",
        "svc:/eniq/scheduler:default",
        "svc:/eniq/sim:default",
        "svc:/eniq/roll-snap:default",
        "svc:/milestone/NAS-online:default",
    ],
    "eniq-engine": [
        "svc:/storage/NASd:default",
        "svc:/eniq/esm:default",
        "svc:/eniq/rmiregistry:default",
        "svc:/eniq/connectd:default",
        "svc:/eniq/engine:default",
        "svc:/eniq/roll-snap:default",
    ],
    "eniq-reader": [
        "svc:/eniq/esm:default",
        "svc:/eniq/dwh_reader:default",
        "svc:/eniq/roll-snap:default",
    ],
    "eniq-writer": [
        "svc:/eniq/esm:default",
        "svc:/eniq/dwh_reader:default",
        "svc:/eniq/roll-snap:default",
    ],
}

# the DDC monitor restarts on its own, so it is required to run but not tracked for drift
DDC_SERVICE = "svc:/ericsson/eric_monitor/ddc:default"

ZFS_POOL_THRESHOLDS: Dict[str, Dict[str, int]] = {
    "eniq-coordinator": {"eniq_sp_1": 50, "rpool": 70, "stats_coordinator_pool": 70},
    "eniq-engine": {"eniq_sp_1": 50, "rpool": 70, "stats_engine_pool": 5},
    "eniq-reader": {"eniq_sp_1": 50, "rpool": 50, "stats_iqr_pool": 20},
    "eniq-writer": {"eniq_sp_1": 50, "rpool": 50, "stats_iqr_pool": 20},
}

# minimum number of parsed loader sets per day, by table and source OSS
ETLC_EXPECTED_TABLES: Dict[str, int] = {
    "DIM_E_LTE_SITE-eniq_oss_2": 1,
    "DIM_E_GRAN_BTS-eniq_oss_2": 1,
    "DIM_E_GRAN_LBG-eniq_oss_2": 1,
    "DIM_E_GRAN_SITE-eniq_oss_2": 1,
    "DC_E_RADIONODE_MIXED-eniq_oss_2": 25,
    "DIM_E_GRAN_STGASSOCIATION-eniq_oss_2": 1,
    "DC_E_CNAXE_MSCCL_APG-eniq_oss_2": 25,
    "DIM_E_GRAN_NW-eniq_oss_2": 1,
    "DIM_E_CN_SITE-eniq_oss_2": 1,
    "DIM_RAN_BASE_SITE-eniq_oss_2": 1,
    "DC_E_RBSG2-eniq_oss_2": 25,
    "DIM_RAN_BASE_RBS-eniq_oss_2": 1,
    "DIM_E_LTE_ERBS-eniq_oss_2": 1,
    "DIM_E_GRAN_AS-eniq_oss_2": 1,
    "DIM_E_CN_MSCCL-eniq_oss_2": 1,
    "DIM_E_CN_HADDR-eniq_oss_2": 25,
    "DC_E_BSS_APG-eniq_oss_2": 25,
    "DIM_RAN_BASE_RNC-eniq_oss_2": 1,
    "DC_E_CNAXE_HLRVLRSUB-eniq_oss_2": 7,
    "DIM_E_CN_AXE-eniq_oss_2": 1,
    "DC_E_RBS-eniq_oss_2": 25,
    "DC_E_CNAXE_APG-eniq_oss_2": 7,
    "DIM_E_GRAN_CELL-eniq_oss_2": 1,
    "DIM_E_GRAN_SCGR-eniq_oss_2": 1,
    "DIM_E_GRAN_TG-eniq_oss_2": 1,
    "DC_E_BTSG2-eniq_oss_2": 25,
    "DC_E_RNC-eniq_oss_2": 25,
    "DIM_E_GRAN_MCTR-eniq_oss_2": 1,
    "DIM_E_CN_MSCCLMF_AS-eniq_oss_2": 1,
    "DC_E_NR_RAT-eniq_oss_3": 25,
    "DC_E_BSS_APG-eniq_oss_3": 25,
    "DC_E_ERBSG2-eniq_oss_3": 25,
    "DIM_E_CN_AXE-eniq_oss_3": 1,
    "DIM_E_GRAN_TG-eniq_oss_3": 1,
    "DC_E_CNAXE_APG-eniq_oss_3": 25,
    "DC_E_RNC-eniq_oss_3": 25,
    "DC_E_MGW-eniq_oss_3": 36,
    "DIM_E_GRAN_NW-eniq_oss_3": 1,
    "DIM_E_LTE_NR-eniq_oss_3": 1,
    "DIM_E_IPRAN_TWAMPSESSIONS-eniq_oss_3": 1,
    "DC_E_ERBS-eniq_oss_3": 25,
    "DIM_RAN_BASE_RNC-eniq_oss_3": 2,
    "DIM_E_GRAN_MCTR-eniq_oss_3": 1,
    "DIM_E_GRAN_SCGR-eniq_oss_3": 1,
    "DIM_E_GRAN_STGASSOCIATION-eniq_oss_3": 1,
    "DC_E_RBS-eniq_oss_3": 25,
    "DIM_E_GRAN_CELL-eniq_oss_3": 1,
    "DIM_E_GRAN_LBG-eniq_oss_3": 1,
    "DIM_E_CN_MGW-eniq_oss_3": 1,
    "DC_E_RBSG2-eniq_oss_3": 25,
    "DIM_E_GRAN_AS-eniq_oss_3": 1,
    "DIM_RAN_BASE_RBS-eniq_oss_3": 1,
    "DC_E_RADIONODE_MIXED-eniq_oss_3": 25,
    "DC_E_BTSG2-eniq_oss_3": 25,
    "DIM_E_GRAN_BTS-eniq_oss_3": 1,
    "DIM_E_LTE_ERBS-eniq_oss_3": 1,
    "DIM_E_CN_CN-eniq_oss_3": 1,
}

EVERY_STATS_DAY = "Tuesday, Thursday, Saturday"

BACKUP_SCHEDULES: Dict[str, Dict[str, str]] = {
    "ombs-site-a": {
        "ENIQ_STATS_MULTIBLADE_CORDINATOR_DATA_eniq1bk": "Saturday",
        "ENIQ_STATS_MULTIBLADE_DATA_eniq1enbk": EVERY_STATS_DAY,
        "ENIQ_STATS_MULTIBLADE_DATA_eniq1rdbk": EVERY_STATS_DAY,
        "ENIQ_STATS_MULTIBLADE_DATA_eniq1wrbk": EVERY_STATS_DAY,
        "ENIQ_STATS_ONBLADE_RAW_eniq1bk": "Sunday",
        "ENIQ_STATS_ROOT_eniq1bk": EVERY_STATS_DAY,
        "ENIQ_STATS_ROOT_eniq1enbk": EVERY_STATS_DAY,
        "ENIQ_STATS_ROOT_eniq1rdbk": EVERY_STATS_DAY,
        "ENIQ_STATS_ROOT_eniq1wrbk": EVERY_STATS_DAY,
        "ENM_SCHEDULED_enmmsbk": EVERY_STATS_DAY,
        "enmombs_FILES": "All",
        "enmombs_Hot_Catalog": "All",
        "omsas1bk_FILES": "All",
        "bis1bk_windows": "All",
    },
    "ombs-site-b": {
        "OSS_i386_DATA_MD_syb1bkup": "All",
        "OSS_i386_DATA_MS_ossbkup": "All",
        "OSS_i386_ROOT_MD_syb1bkup": "All",
        "OSS_i386_ROOT_MS_ossbkup": "All",
        "inf1bl-bk_FILES": "All",
        "inf2bl-bk_FILES": "All",
        "mws-bk_FILES": "All",
        "nedss_FILES": "All",
        "ombs1bl_FILES": "All",
        "ombs1bl_Hot_Catalog": "All",
        "omsas_FILES": "All",
        "xts1bl-bk_FILES": "All",
        "xts2bl_FILES": "All",
    },
}

BACKUP_SCRIPTS: Dict[str, str] = {
    "ombs-site-a": "/ericsson/ombsl/bin/last_successful_backup.bsh",
    "ombs-site-b": "/ericsson/ombss/bin/last_successful_backup.bsh",
}


def _oss_master() -> HostPolicy:
    return HostPolicy(
        role="oss-master",
        description="OSS-RC master server with Sybase and Versant databases",
        thresholds={
            **COMMON_THRESHOLDS,
            "CheckSyDb": _rule(80, "<", "%"),
            "CheckVrstDbSU": _rule(30, "<", "%"),
            "MonConfigExports": _rule(10, "<=", " jobs"),
            "CheckHomeSU": _rule(10, "<", "G"),
            "CheckMoshellLogSU": _rule(5, "<", "G"),
            "CheckWtmpx": _rule(1, "<", "G"),
            "CheckSyLogSize": _rule(1, "<", "M"),
            "CheckSyBackLog": _rule(400, ">=", " lines"),
        },
        item_thresholds={"CheckOssDisksSU": OSS_DISK_THRESHOLDS},
        expected_sets={
            "MonConfigExports": ["export_admin"],
            "MonRestarts": NOC_OPERATORS,
            # service group prefix and the node where it is expected to be offline
            "CheckVeritas": ["Oss:1bl", "Syb:2bl"],
        },
        schedules={"CheckSyBackLog": {"masterdataservice": "Sunday"}},
        markers={"MonVrstDb": "***** Mon Nov  9 19:33:14 QYZT 2020  *****"},
    )


def _uas() -> HostPolicy:
    return HostPolicy(
        role="uas",
        description="UNIX application server used by operators",
        thresholds=dict(COMMON_THRESHOLDS),
    )


def _eniq(role: str, description: str) -> HostPolicy:
    tracked = ENIQ_SERVICES[role]
    pools = {
        pool: _rule(limit, "<=", "%")
        for pool, limit in ZFS_POOL_THRESHOLDS[role].items()
    }
    return HostPolicy(
        role=role,
        description=description,
        thresholds={
            **COMMON_THRESHOLDS,
            "CheckETLC": _rule(250, ">=", " entries"),
        },
        item_thresholds={"CheckZfsPoolSU": pools},
        expected_sets={
            "CheckSrvs": tracked + [DDC_SERVICE],
            "CheckSrvsUptime": list(tracked),
            "CheckETLC": ["oss_2", "oss_3"],
        },
        expected_counts={"DeepCheckETLC": dict(ETLC_EXPECTED_TABLES)},
        markers={"CheckSnapshots": "snss"},
    )


def _enm_ms() -> HostPolicy:
    return HostPolicy(
        role="enm-ms",
        description="ENM management server",
        thresholds={
            **COMMON_THRESHOLDS,
            # one matching line per scripting and amos VM
            "CheckBashrc": _rule(4, "==", " lines"),
            "CheckNodesFilesUpdate": _rule(4, "==", " files"),
        },
        expected_sets={"CheckNodesFilesUpdate": ["nodesAliases", "ipdatabase"]},
    )


def _ombs(role: str, policies: int) -> HostPolicy:
    return HostPolicy(
        role=role,
        description="OSS Management Backup Server running NetBackup",
        thresholds={
            **COMMON_THRESHOLDS,
            "CheckNrOfBackupPolicies": _rule(policies, "==", " policies"),
        },
        schedules={"CheckBackupPoliciesSchedExec": BACKUP_SCHEDULES[role]},
        settings={
            "last_backup_script": BACKUP_SCRIPTS[role],
            "netbackup_excluded_clients": ["enmnas"],
        },
    )


def builtin_roles() -> Dict[str, HostPolicy]:
    """Return a fresh copy of every built-in role policy."""
    policies = [
        _oss_master(),
        _uas(),
        _eniq("eniq-coordinator", "ENIQ statistics coordinator blade"),
        _eniq("eniq-engine", "ENIQ statistics engine blade"),
        _eniq("eniq-reader", "ENIQ statistics reader blade"),
        _eniq("eniq-writer", "ENIQ statistics writer blade"),
        _enm_ms(),
        _ombs("ombs-site-a", 15),
        _ombs("ombs-site-b", 13),
    ]
    return {policy.role: policy for policy in policies}
