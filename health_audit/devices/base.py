"""
Base classes for remote host abstraction.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import BaseModel


class DeviceCredentials(BaseModel):
    """Credentials for host authentication."""

    username: Optional[str] = None
    password: Optional[str] = None
    private_key: Optional[str] = None


class DeviceConnection(BaseModel):
    """Host connection information."""

    host: str
    port: int = 22
    timeout: int = 10
    command_timeout: Optional[float] = None
    known_hosts: Optional[str] = None
    credentials: DeviceCredentials


class CommandResult(BaseModel):
    """Result of executing one command on a host.

    ``output`` holds stdout and stderr combined, in the order produced.
    When ``success`` is False the output must not be used for decisions.
    """

    command: str
    success: bool
    output: str
    error: Optional[str] = None
    exit_code: Optional[int] = None
    execution_time: float = 0.0

    @property
    def lines(self) -> List[str]:
        """Output split on line boundaries."""
        return self.output.splitlines()


class RemoteHost(ABC):
    """
    Abstract base class for an audited host.

    One instance owns one connection which is reused by every check run
    against the host.
    """

    def __init__(self, connection: DeviceConnection):
        self.connection = connection
        self._connected = False
        self._last_error: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        """Check if host is currently connected."""
        return self._connected

    @property
    def last_error(self) -> Optional[str]:
        """Reason of the last failed connection attempt."""
        return self._last_error

    @abstractmethod
    async def connect(self) -> bool:
        """Connect to the host. Returns False instead of raising on failure."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the host."""
        pass

    @abstractmethod
    async def execute_command(self, command: str) -> CommandResult:
        """Execute a complete shell command on the host."""
        pass

    def get_test_command(self) -> str:
        """Get a simple command to test connectivity."""
        return "uname -n"

    async def test_connectivity(self) -> bool:
        """Test basic connectivity to the host."""
        if not self.is_connected and not await self.connect():
            return False
        result = await self.execute_command(self.get_test_command())
        return result.success

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.connection.host})"

    def __repr__(self) -> str:
        return self.__str__()
