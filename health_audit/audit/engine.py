"""
Audit engine: runs the checks of a profile on each host and folds the host
verdicts into the run verdict.
"""

import asyncio
import datetime
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..checks import Check, CheckContext, get_check
from ..core.logging_config import get_logger, host_logger, log_success, log_warning
from ..devices.base import RemoteHost
from ..policy.tables import PolicyTables
from .aggregator import Aggregator, record_unreachable, summarize
from .profiles import AuditProfile, Host
from .report import ReportWriter
from .results import AuditRunResult, CheckResult, HostAuditResult, ResultStore

logger = get_logger(__name__)

DeviceFactory = Callable[[Host], RemoteHost]


class AuditEngine:
    """
    Runs audit profiles.

    Each host gets its own ResultStore and ReportWriter, so hosts never see
    each other's verdicts. Checks of one host run strictly in profile order
    over the single connection of that host.
    """

    def __init__(
        self,
        policy_tables: PolicyTables,
        baseline_dir: Union[str, Path] = "var",
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        self.policy_tables = policy_tables
        self.baseline_dir = Path(baseline_dir)
        self.clock = clock or datetime.datetime.now

    async def audit_host(
        self, host: Host, device: RemoteHost, checks: Sequence[Check]
    ) -> HostAuditResult:
        """Audit a single host. A connection failure is recorded, not raised."""
        policy = self.policy_tables.for_role(host.role)
        store = ResultStore()
        writer = ReportWriter()
        check_results: List[CheckResult] = []
        error = None
        started = time.time()
        log = host_logger(logger, host.name)

        writer.enter_host(host.name)
        try:
            connected = await device.connect()
        except Exception as e:
            log.debug("connect raised %s", e)
            connected = False
            error = str(e)

        if not connected:
            error = error or device.last_error or "connection failed"
            log_warning(f"unreachable: {error}", log)
            record_unreachable(host.name, store, writer, error)
        else:
            ctx = CheckContext(
                host_name=host.name,
                role=host.role,
                runner=device,
                policy=policy,
                writer=writer,
                store=store,
                baseline_dir=self.baseline_dir,
                clock=self.clock,
            )
            try:
                for check in checks:
                    log.debug("running %s", check.name)
                    result = await check.execute(ctx)
                    if result is not None:
                        check_results.append(result)
            finally:
                await device.disconnect()
        writer.leave_host(host.name)

        verdicts = dict(store.items())
        passed = summarize(host.name, store, writer)
        duration = time.time() - started
        if passed:
            log_success(f"{len(verdicts)} checks passed", log)
        else:
            failed = [name for name, verdict in verdicts.items() if not verdict]
            log_warning(f"failed {', '.join(failed)}", log)

        return HostAuditResult(
            host=host.name,
            role=host.role,
            reachable=connected,
            passed=passed,
            verdicts=verdicts,
            check_results=check_results,
            writer=writer,
            audit_timestamp=self.clock().isoformat(),
            error=error,
            duration=duration,
        )

    def _plan(self, profile: AuditProfile) -> Dict[str, List[Check]]:
        """Validate the profile and instantiate the checks of every host."""
        seen = set()
        for host in profile.hosts:
            if host.name in seen:
                raise ValueError(f"host {host.name} appears twice in profile '{profile.name}'")
            seen.add(host.name)
            self.policy_tables.for_role(host.role)

        return {
            host.name: [get_check(name) for name in profile.checks_for(host)]
            for host in profile.hosts
        }

    async def run(
        self,
        profile: AuditProfile,
        device_factory: DeviceFactory,
        parallel: bool = False,
    ) -> AuditRunResult:
        """
        Audit every host of the profile.

        Args:
            profile: hosts and checks to run
            device_factory: creates the RemoteHost used for one host
            parallel: audit hosts concurrently; the report keeps host order

        Raises:
            ValueError: duplicate host names in the profile
            PolicyError: a host role without policy
            KeyError: an unknown check name
        """
        plan = self._plan(profile)
        logger.info(
            "Starting %s audit of %s host(s)%s",
            profile.title,
            len(profile.hosts),
            " in parallel" if parallel else "",
        )

        if parallel:
            host_results = list(
                await asyncio.gather(
                    *(
                        self.audit_host(host, device_factory(host), plan[host.name])
                        for host in profile.hosts
                    )
                )
            )
        else:
            host_results = []
            for host in profile.hosts:
                host_results.append(
                    await self.audit_host(host, device_factory(host), plan[host.name])
                )

        aggregator = Aggregator()
        report = ReportWriter()
        for host_result in host_results:
            aggregator.fold(host_result.passed)
            report.extend(host_result.writer)

        return AuditRunResult(
            title=profile.title,
            passed=aggregator.overall_passed,
            host_results=host_results,
            report=report,
            audit_timestamp=self.clock().isoformat(),
            mail_sender=profile.mail_sender,
            mail_group=profile.mail_group,
        )
