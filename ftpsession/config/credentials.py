"""Keyring-backed password storage for ftpsession.

The JSON profile never holds passwords. CredentialManager keeps the FTP
login password and the SOCKS5 proxy password in the system keyring and
fills them back into a loaded FtpSessionConfig.
"""

import logging
from dataclasses import replace
from typing import Optional

import keyring
from keyring.errors import KeyringError

from ftpsession.config.settings import FtpSessionConfig

logger = logging.getLogger("ftpsession.credentials")

ANONYMOUS = "anonymous"


class CredentialManager:
    """Stores session and proxy passwords in the system keyring."""

    SERVICE_NAME = "ftpsession"

    @staticmethod
    def login_key(host: str, username: Optional[str]) -> str:
        """Keyring entry name for an FTP login."""
        return f"ftp://{username or ANONYMOUS}@{host}"

    @staticmethod
    def proxy_key(host: str, username: str) -> str:
        """Keyring entry name for a SOCKS5 proxy login."""
        return f"socks5://{username}@{host}"

    def resolve(self, config: FtpSessionConfig) -> FtpSessionConfig:
        """
        Fill in passwords missing from a configuration.

        The login password is looked up when a host is set; the proxy
        password when the proxy has a username. Passwords already
        present are kept.

        Args:
            config: Configuration, usually loaded from the profile

        Returns:
            Configuration with the stored passwords applied
        """
        if config.host and config.password is None:
            password = self._get(self.login_key(config.host, config.username))
            if password is not None:
                config = config.replace(password=password)

        proxy = config.proxy
        if proxy is not None and proxy.username and proxy.password is None:
            password = self._get(self.proxy_key(proxy.host, proxy.username))
            if password is not None:
                config = config.replace(proxy=replace(proxy, password=password))

        return config

    def store(self, config: FtpSessionConfig) -> bool:
        """
        Save the passwords of a configuration.

        Args:
            config: Configuration whose passwords are saved

        Returns:
            True if every present password was saved
        """
        saved = True
        if config.host and config.password is not None:
            saved &= self._set(self.login_key(config.host, config.username), config.password)

        proxy = config.proxy
        if proxy is not None and proxy.username and proxy.password is not None:
            saved &= self._set(self.proxy_key(proxy.host, proxy.username), proxy.password)

        return saved

    def forget(self, config: FtpSessionConfig) -> None:
        """Remove the saved login and proxy passwords of a configuration."""
        if config.host:
            self._delete(self.login_key(config.host, config.username))
        if config.proxy is not None and config.proxy.username:
            self._delete(self.proxy_key(config.proxy.host, config.proxy.username))

    def _get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.SERVICE_NAME, key)
        except KeyringError as e:
            logger.warning(f"Could not read password for {key}: {e}")
            return None

    def _set(self, key: str, password: str) -> bool:
        try:
            keyring.set_password(self.SERVICE_NAME, key, password)
            return True
        except KeyringError as e:
            logger.warning(f"Could not store password for {key}: {e}")
            return False

    def _delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.SERVICE_NAME, key)
        except KeyringError as e:
            # PasswordDeleteError when nothing was stored
            logger.debug(f"No password removed for {key}: {e}")
