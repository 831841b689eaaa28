"""
Remote host implementations.
"""

from .base import CommandResult, DeviceConnection, DeviceCredentials, RemoteHost
from .ssh_host import SSHHost

__all__ = [
    "CommandResult",
    "DeviceConnection",
    "DeviceCredentials",
    "RemoteHost",
    "SSHHost",
]
