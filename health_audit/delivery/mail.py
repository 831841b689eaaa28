"""
Report delivery through mailx on a relay host.
"""

import shlex
from typing import Callable, Optional

from ..core.config import MailSettings, SSHSettings
from ..core.logging_config import get_logger, log_error, log_success
from ..devices.ssh_host import SSHHost

logger = get_logger(__name__)

HostFactory = Callable[..., SSHHost]


class MailDelivery:
    """
    Sends a rendered report to a recipient group.

    The report is copied to the relay host, piped into ``mailx`` there and
    removed afterwards. A failed delivery is logged and not retried.
    """

    def __init__(
        self,
        mail: MailSettings,
        ssh: SSHSettings,
        host_factory: HostFactory = SSHHost,
    ):
        self.mail = mail
        self.ssh = ssh
        self.host_factory = host_factory

    def _relay(self) -> SSHHost:
        return self.host_factory(
            host=self.mail.server,
            username=self.mail.username,
            private_key=self.ssh.private_key,
            port=self.mail.port,
            timeout=self.ssh.timeout,
            known_hosts=self.ssh.known_hosts,
        )

    @staticmethod
    def mailx_command(remote_name: str, sender: str, subject: str, recipients) -> str:
        return (
            f"cat {shlex.quote(remote_name)} | mailx -r {shlex.quote(sender)}"
            f" -s {shlex.quote(subject)} {shlex.quote(', '.join(recipients))}"
        )

    async def deliver(
        self,
        report_text: str,
        sender: str,
        subject: str,
        group: str = "admins",
        remote_name: Optional[str] = None,
    ) -> bool:
        """Mail report_text to the recipients of group. Returns True when sent."""
        recipients = self.mail.recipients(group)
        if not recipients:
            log_error(f"Mail group '{group}' has no recipients", logger)
            return False
        if not self.mail.server:
            log_error("No mail relay server configured", logger)
            return False

        remote_name = remote_name or f"{sender.lower()}-report.txt"
        relay = self._relay()
        if not await relay.connect():
            log_error(f"Cannot reach mail relay {self.mail.server}: {relay.last_error}", logger)
            return False

        try:
            if not await relay.upload_text(remote_name, report_text):
                return False

            result = await relay.execute_command(
                self.mailx_command(remote_name, sender, subject, recipients)
            )
            if not result.success:
                log_error(f"mailx failed on {self.mail.server}: {result.error}", logger)

            cleanup = await relay.execute_command(f"rm -f {shlex.quote(remote_name)}")
            if not cleanup.success:
                logger.warning("Could not remove %s on %s", remote_name, self.mail.server)
        finally:
            await relay.disconnect()

        if result.success:
            log_success(f"Report '{subject}' mailed to group {group}", logger)
        return result.success
