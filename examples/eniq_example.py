#!/usr/bin/env python3
"""
Example script running the ENIQ audit from Python instead of the CLI.

This script shows how to:
1. Load the built-in policy and tighten one threshold
2. Narrow the ENIQ profile to two blades reached by address
3. Run the audit and print the report

Usage:
    python eniq_example.py
"""

import asyncio

from health_audit import AuditEngine, PolicyTables, SSHHost, get_profile
from health_audit.core.config import HostOverride
from health_audit.policy.tables import Comparator, ThresholdRule


async def main():
    print("🩺 Health Audit - ENIQ Example")
    print("=" * 50)

    # 1. Policy: built-in tables with a stricter filesystem limit on the engine blade
    print("\n📋 Loading policy...")
    tables = PolicyTables.builtin()
    engine_policy = tables.for_role("eniq-engine")
    stricter = engine_policy.model_copy(
        update={
            "thresholds": {
                **engine_policy.thresholds,
                "CheckDisksSU": ThresholdRule(limit=30, comparator=Comparator.LT, unit="%"),
            }
        }
    )
    tables = tables.merged(PolicyTables(roles={"eniq-engine": stricter}))
    print(f"✓ {len(tables.roles)} roles loaded")
    print(f"✓ eniq-engine CheckDisksSU {stricter.threshold('CheckDisksSU')}")

    # 2. Profile: only the coordinator and the engine, reached by address
    print("\n🖥️  Preparing profile...")
    profile = (
        get_profile("eniq")
        .with_overrides(
            {
                "eniq-coordinator": HostOverride(address="10.0.1.10"),
                "eniq-engine": HostOverride(address="10.0.1.11"),
            }
        )
        .with_hosts(["eniq-coordinator", "eniq-engine"])
    )
    for host in profile.hosts:
        print(f"  - {host.name} ({host.target}): {', '.join(profile.checks_for(host))}")

    # Note: example credentials - use a key and a known_hosts file in production
    def device_factory(host):
        return SSHHost(
            host=host.target,
            username="noc_operator1",
            private_key="~/.ssh/id_ed25519",
            known_hosts="~/.ssh/known_hosts",
        )

    # 3. Run and report
    print("\n🔍 Running audit...")
    engine = AuditEngine(tables, baseline_dir="/var/tmp/health-audit")
    result = await engine.run(profile, device_factory, parallel=True)

    for host_result in result.host_results:
        status = "✓" if host_result.passed else "❌"
        print(f"  {status} {host_result.host}: {len(host_result.failed_checks)} failed check(s)")

    print(f"\n{result.subject}\n")
    print(result.render_report())


if __name__ == "__main__":
    asyncio.run(main())
