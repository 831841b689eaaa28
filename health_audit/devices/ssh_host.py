"""
SSH implementation of RemoteHost built on paramiko.
"""

import asyncio
import os
import time
from typing import Any, Dict, Optional

import paramiko

from ..core.credentials import credential_manager
from ..core.logging_config import get_logger
from .base import CommandResult, DeviceConnection, DeviceCredentials, RemoteHost

logger = get_logger(__name__)

READ_CHUNK = 32768


class SSHHost(RemoteHost):
    """Audited server reached over SSH.

    paramiko is blocking, so connect and every command run in a worker thread.
    That lets several hosts be audited concurrently while the commands of one
    host still run strictly one after another.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: Optional[str] = None,
        private_key: Optional[str] = None,
        port: int = 22,
        timeout: int = 10,
        known_hosts: Optional[str] = None,
        command_timeout: Optional[float] = None,
    ):
        credentials = DeviceCredentials(
            username=username,
            password=password,
            private_key=private_key,
        )
        connection = DeviceConnection(
            host=host,
            port=port,
            timeout=timeout,
            command_timeout=command_timeout,
            known_hosts=known_hosts,
            credentials=credentials,
        )
        super().__init__(connection)
        self._ssh_client: Optional[paramiko.SSHClient] = None

    def _new_client(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        known_hosts = self.connection.known_hosts
        if known_hosts and os.path.exists(os.path.expanduser(known_hosts)):
            client.load_host_keys(os.path.expanduser(known_hosts))
            client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        return client

    def _base_kwargs(self) -> Dict[str, Any]:
        return {
            "hostname": self.connection.host,
            "port": self.connection.port,
            "username": self.connection.credentials.username,
            "timeout": self.connection.timeout,
        }

    def _try_connect(self, method: str, **kwargs) -> bool:
        client = self._new_client()
        try:
            client.connect(**self._base_kwargs(), **kwargs)
        except paramiko.AuthenticationException as e:
            logger.debug(
                "%s authentication failed for %s: %s", method, self.connection.host, e
            )
            self._last_error = f"authentication failed: {e}"
            client.close()
            return False
        except (paramiko.SSHException, OSError):
            client.close()
            raise

        self._ssh_client = client
        self._connected = True
        self._last_error = None
        logger.info("Connected to %s using %s", self.connection.host, method)
        return True

    def _connect_blocking(self) -> bool:
        credentials = self.connection.credentials
        if not credentials.username:
            self._last_error = "SSH username is required"
            logger.error(self._last_error)
            return False

        try:
            if credentials.private_key:
                key = credential_manager.load_private_key(
                    credentials.private_key, credentials.username, self.connection.host
                )
                if key is not None:
                    if self._try_connect(
                        "private key", pkey=key, look_for_keys=False, allow_agent=False
                    ):
                        return True
                else:
                    logger.warning("Could not load private key: %s", credentials.private_key)

            if credentials.password:
                return self._try_connect(
                    "password",
                    password=credentials.password,
                    look_for_keys=False,
                    allow_agent=False,
                )

            # "No authentication methods available" when there is no agent or key
            try:
                if self._try_connect("default keys", look_for_keys=True, allow_agent=True):
                    return True
            except paramiko.SSHException as e:
                logger.debug("default keys unusable for %s: %s", self.connection.host, e)
                self._last_error = str(e) or e.__class__.__name__

            password = credential_manager.get_ssh_password(
                credentials.username, self.connection.host
            )
            if password:
                return self._try_connect(
                    "prompted password",
                    password=password,
                    look_for_keys=False,
                    allow_agent=False,
                )

            logger.error("No authentication method available for %s", self.connection.host)
            return False

        except (paramiko.SSHException, OSError) as e:
            self._connected = False
            self._last_error = str(e) or e.__class__.__name__
            logger.error("Failed to connect to %s: %s", self.connection.host, e)
            return False

    async def connect(self) -> bool:
        """Connect to the server via SSH."""
        return await asyncio.to_thread(self._connect_blocking)

    async def disconnect(self) -> None:
        """Disconnect from the server."""
        if self._ssh_client:
            self._ssh_client.close()
            self._ssh_client = None
        self._connected = False

    def _run(self, command: str) -> CommandResult:
        start_time = time.time()
        transport = self._ssh_client.get_transport() if self._ssh_client else None
        if transport is None or not transport.is_active():
            return CommandResult(
                command=command,
                success=False,
                output="",
                error="Not connected to host",
                execution_time=0.0,
            )

        channel = None
        try:
            channel = transport.open_session(timeout=self.connection.timeout)
            channel.set_combine_stderr(True)
            channel.settimeout(self.connection.command_timeout)
            channel.exec_command(command)

            chunks = []
            while True:
                chunk = channel.recv(READ_CHUNK)
                if not chunk:
                    break
                chunks.append(chunk)
            exit_code = channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            logger.debug("Command failed on %s: %s: %s", self.connection.host, command, e)
            return CommandResult(
                command=command,
                success=False,
                output="",
                error=str(e) or e.__class__.__name__,
                execution_time=time.time() - start_time,
            )
        finally:
            if channel is not None:
                channel.close()

        output = b"".join(chunks).decode("utf-8", errors="replace")
        success = exit_code == 0
        return CommandResult(
            command=command,
            success=success,
            output=output,
            error=None if success else f"exit status {exit_code}",
            exit_code=exit_code,
            execution_time=time.time() - start_time,
        )

    async def execute_command(self, command: str) -> CommandResult:
        """Execute a command and collect its combined output."""
        result = await asyncio.to_thread(self._run, command)
        logger.debug(
            "%s: %r exited %s in %.2fs",
            self.connection.host,
            command,
            result.exit_code,
            result.execution_time,
        )
        return result

    def _upload_blocking(self, remote_path: str, content: str) -> None:
        sftp = self._ssh_client.open_sftp()
        try:
            with sftp.open(remote_path, "w") as remote_file:
                remote_file.write(content)
        finally:
            sftp.close()

    async def upload_text(self, remote_path: str, content: str) -> bool:
        """Write content to remote_path over SFTP."""
        if not self._ssh_client:
            logger.error("Cannot upload to %s: not connected", self.connection.host)
            return False
        try:
            await asyncio.to_thread(self._upload_blocking, remote_path, content)
        except (paramiko.SSHException, OSError) as e:
            logger.error("Upload to %s:%s failed: %s", self.connection.host, remote_path, e)
            return False
        return True
