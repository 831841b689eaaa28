"""
Credential handling for SSH sessions.

Loads private keys (prompting for a passphrase when the key is encrypted) and
prompts for passwords as a last resort. Every secret is cached per run so a
multi-host audit asks at most once.
"""

import getpass
import os
import sys
from typing import Dict, Optional

import paramiko

from .logging_config import get_logger

logger = get_logger(__name__)

KEY_CLASSES = (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey)


class CredentialManager:
    """Caches passwords and key passphrases for the lifetime of a run."""

    def __init__(self):
        self._credential_cache: Dict[str, str] = {}
        self._non_interactive = False

    @property
    def non_interactive(self) -> bool:
        return self._non_interactive

    def set_non_interactive(self, non_interactive: bool):
        """Set non-interactive mode (no prompts, e.g. when run from cron)."""
        self._non_interactive = non_interactive
        if non_interactive:
            logger.info("Non-interactive mode enabled, credential prompts will fail")

    def get_ssh_password(self, username: str, host: str) -> Optional[str]:
        """
        Get the SSH password for username@host, prompting once per run.

        Returns:
            The password, or None when it cannot be obtained
        """
        cache_key = f"ssh:{username}@{host}"
        if cache_key in self._credential_cache:
            return self._credential_cache[cache_key]

        password = self._prompt(f"Enter SSH password for {username}@{host}: ")
        if password:
            self._credential_cache[cache_key] = password
        return password

    def load_private_key(
        self, key_path: str, username: str, host: str
    ) -> Optional[paramiko.PKey]:
        """
        Load a private key, asking for its passphrase when it is encrypted.

        Args:
            key_path: Path to the private key file (``~`` is expanded)
            username: SSH username, used in log messages
            host: SSH host, used in log messages

        Returns:
            Loaded key or None when the key cannot be used
        """
        key_path = os.path.expanduser(key_path)
        if not os.path.exists(key_path):
            logger.error("Private key not found: %s", key_path)
            return None

        passphrase = self.get_private_key_passphrase(key_path)

        for key_class in KEY_CLASSES:
            try:
                key = key_class.from_private_key_file(key_path, password=passphrase)
                logger.debug(
                    "Loaded %s from %s for %s@%s",
                    key_class.__name__,
                    key_path,
                    username,
                    host,
                )
                return key
            except paramiko.PasswordRequiredException:
                if passphrase:
                    logger.error("Invalid passphrase for %s", key_path)
                    return None
                continue
            except (paramiko.SSHException, OSError, ValueError) as e:
                logger.debug("Key %s is not a %s: %s", key_path, key_class.__name__, e)
                continue

        logger.error("Unable to load private key from %s", key_path)
        return None

    def get_private_key_passphrase(self, key_path: str) -> Optional[str]:
        """Return the passphrase for key_path, or None when the key is not encrypted."""
        cache_key = f"passphrase:{key_path}"
        if cache_key in self._credential_cache:
            return self._credential_cache[cache_key]

        for key_class in KEY_CLASSES:
            try:
                key_class.from_private_key_file(key_path)
                logger.debug("Key %s loaded without passphrase", key_path)
                return None
            except paramiko.PasswordRequiredException:
                break
            except (paramiko.SSHException, OSError, ValueError):
                continue

        passphrase = self._prompt(f"Enter passphrase for {key_path}: ")
        if passphrase:
            self._credential_cache[cache_key] = passphrase
        return passphrase

    def _prompt(self, prompt: str) -> Optional[str]:
        if self._non_interactive:
            logger.error("Cannot prompt in non-interactive mode: %s", prompt.strip())
            return None

        if not sys.stdin.isatty():
            logger.error("Cannot prompt for credentials: not running in a terminal")
            return None

        try:
            # Clear any Rich output and ensure clean terminal
            print("\r", end="", flush=True)
            secret = getpass.getpass(prompt)
            return secret if secret else None
        except (KeyboardInterrupt, EOFError):
            logger.info("Credential prompt cancelled by user")
            return None

    def clear_cache(self):
        """Clear cached credentials."""
        self._credential_cache.clear()
        logger.debug("Credential cache cleared")


# Global credential manager instance
credential_manager = CredentialManager()
