"""
Shared fixtures: a scripted host standing in for an SSH server.
"""

import asyncio
from datetime import datetime

import pytest

from health_audit.audit.report import ReportWriter
from health_audit.audit.results import ResultStore
from health_audit.checks import CheckContext
from health_audit.devices.base import (
    CommandResult,
    DeviceConnection,
    DeviceCredentials,
    RemoteHost,
)
from health_audit.policy.tables import PolicyTables

# a Sunday
FIXED_NOW = datetime(2024, 3, 10, 8, 30, 0)


class ScriptedHost(RemoteHost):
    """
    RemoteHost replaying canned command output.

    ``script`` maps a command, or a substring of it, to the output text or to an
    ``(output, success)`` tuple. Unknown commands fail like a missing binary.
    """

    def __init__(self, name="scripted", script=None, reachable=True, error="connection refused"):
        super().__init__(
            DeviceConnection(host=name, credentials=DeviceCredentials(username="root"))
        )
        self.script = dict(script or {})
        self.reachable = reachable
        self.error = error
        self.commands = []
        self.disconnected = False

    async def connect(self) -> bool:
        if not self.reachable:
            self._last_error = self.error
            return False
        self._connected = True
        return True

    async def disconnect(self) -> None:
        self._connected = False
        self.disconnected = True

    def _lookup(self, command):
        if command in self.script:
            return self.script[command]
        for key, value in self.script.items():
            if key in command:
                return value
        return None

    async def execute_command(self, command: str) -> CommandResult:
        self.commands.append(command)
        reply = self._lookup(command)
        if reply is None:
            return CommandResult(
                command=command, success=False, output="", error="exit status 127", exit_code=127
            )
        if isinstance(reply, tuple):
            output, success = reply
        else:
            output, success = reply, True
        return CommandResult(
            command=command,
            success=success,
            output=output,
            error=None if success else "exit status 1",
            exit_code=0 if success else 1,
        )


def run_check(check, ctx):
    """Execute a check synchronously and return its CheckResult."""
    return asyncio.run(check.execute(ctx))


@pytest.fixture
def tables():
    return PolicyTables.builtin()


@pytest.fixture
def make_context(tables, tmp_path):
    """Build a CheckContext for a role around a ScriptedHost."""

    def factory(role="oss-master", script=None, now=FIXED_NOW, policy=None, host_name=None):
        host = ScriptedHost(host_name or role, script)
        return CheckContext(
            host_name=host_name or role,
            role=role,
            runner=host,
            policy=policy or tables.for_role(role),
            writer=ReportWriter(),
            store=ResultStore(),
            baseline_dir=tmp_path / "var",
            clock=lambda: now,
        )

    return factory
