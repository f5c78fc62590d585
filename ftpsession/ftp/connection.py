"""FTP connection management for ftpsession.

Provides ConnectionState and FtpConnection, the owner of the single
ftplib handle used by a client.
"""

import ftplib
import logging
import socket
from datetime import datetime
from enum import Enum
from ftplib import FTP, FTP_PORT, error_perm
from typing import Optional

from ftpsession.config.settings import FtpSessionConfig
from ftpsession.ftp.exceptions import ErrorKind, FtpClientError
from ftpsession.ftp.proxy import Socks5FTP
from ftpsession.ftp.transfer import FileType
from ftpsession.utils.validators import validate_host

logger = logging.getLogger("ftpsession.connection")


class ConnectionState(Enum):
    """FTP connection state."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


def check_reply(reply: str, operation: str = "Command") -> str:
    """
    Require a positive completion (2xx) reply.

    Args:
        reply: Reply text returned by ftplib
        operation: Name of the command for the error message

    Returns:
        The reply, unchanged

    Raises:
        FtpClientError: If the reply is not in the 2xx class
    """
    if not isinstance(reply, str) or not reply.startswith("2"):
        raise FtpClientError.from_reply(str(reply), operation)
    return reply


class FtpConnection:
    """Manages the lifecycle of one FTP control connection."""

    def __init__(self):
        self._ftp: Optional[FTP] = None
        self._config: Optional[FtpSessionConfig] = None
        self._state = ConnectionState.DISCONNECTED
        self._connected_at: Optional[datetime] = None
        self._last_activity: Optional[datetime] = None
        self._error_message: Optional[str] = None

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """True if a handle exists and still holds its control socket."""
        return (
            self._state == ConnectionState.CONNECTED
            and self._ftp is not None
            and self._ftp.sock is not None
        )

    @property
    def config(self) -> Optional[FtpSessionConfig]:
        """Configuration of the current or last connection."""
        return self._config

    @property
    def connected_at(self) -> Optional[datetime]:
        """Timestamp when connection was established."""
        return self._connected_at

    @property
    def last_activity(self) -> Optional[datetime]:
        """Timestamp of last successful operation."""
        return self._last_activity

    @property
    def error_message(self) -> Optional[str]:
        """Last error message if state is ERROR."""
        return self._error_message

    @property
    def ftp(self) -> FTP:
        """
        Get the underlying ftplib handle.

        Raises:
            FtpClientError: If not connected
        """
        if not self.is_connected:
            raise FtpClientError.not_connected("FTP access")
        return self._ftp

    def connect(self, config: FtpSessionConfig) -> None:
        """
        Open, configure and authenticate a new connection.

        The channel is switched to passive mode and binary transfer type
        before returning.

        Args:
            config: Connection configuration

        Raises:
            FtpClientError: If the host is invalid, the server cannot be
                reached, login fails or a reply is unfavorable
        """
        is_valid, error = validate_host(config.host)
        if not is_valid:
            raise FtpClientError.invalid_argument(error)

        if self._ftp is not None:
            self.disconnect()

        self._config = config
        self._state = ConnectionState.CONNECTING
        self._error_message = None
        port = config.port or FTP_PORT

        try:
            self._ftp = self._create_ftp(config)

            try:
                welcome = self._ftp.connect(host=config.host, port=port, timeout=config.timeout)
            except socket.timeout as e:
                raise FtpClientError(
                    f"Connection to {config.address} timed out after {config.timeout} seconds",
                    ErrorKind.TIMEOUT,
                    original_error=e,
                ) from e
            except ftplib.Error as e:
                raise FtpClientError.from_transport_error(e, f"Connection to {config.address}") from e
            except (OSError, EOFError) as e:
                raise FtpClientError(
                    f"Failed to connect to {config.address}",
                    ErrorKind.CONNECTION,
                    original_error=e,
                ) from e
            check_reply(welcome, f"Connection to {config.address}")

            self._ftp.set_pasv(True)

            username = config.username or ""
            try:
                reply = self._ftp.login(user=username, passwd=config.password or "")
            except error_perm as e:
                raise FtpClientError(
                    f"Authentication failed for user '{username or 'anonymous'}'",
                    ErrorKind.AUTHENTICATION,
                    original_error=e,
                    reply=str(e),
                ) from e
            except ftplib.all_errors as e:
                raise FtpClientError.from_transport_error(e, "Login") from e
            check_reply(reply, "Login")

            try:
                reply = self._ftp.voidcmd(FileType.BINARY.command)
            except ftplib.all_errors as e:
                raise FtpClientError.from_transport_error(e, FileType.BINARY.command) from e
            check_reply(reply, FileType.BINARY.command)

        except FtpClientError as e:
            self._state = ConnectionState.ERROR
            self._error_message = str(e)
            self._discard()
            logger.warning(f"Connection to {config.address} failed: {e}")
            raise

        self._state = ConnectionState.CONNECTED
        self._connected_at = datetime.now()
        self._last_activity = self._connected_at
        via = f" via proxy {self._config.proxy.host}" if config.proxy else ""
        logger.info(f"Connected to {config.address}{via} as {username or 'anonymous'}")

    def disconnect(self) -> None:
        """Close the connection; a no-op when there is none."""
        if self._ftp is not None:
            try:
                self._ftp.quit()
            except ftplib.all_errors as e:
                logger.debug(f"QUIT failed, closing socket: {e}")
                self._discard()
            if self._config is not None:
                logger.info(f"Disconnected from {self._config.address}")

        self._ftp = None
        self._state = ConnectionState.DISCONNECTED
        self._connected_at = None

    def abandon(self, reason: str) -> None:
        """
        Drop a handle whose control channel can no longer be trusted.

        Used when a command or transfer broke off before its final reply
        was read. The state becomes ERROR, so the next operation opens
        a fresh connection instead of reading a stale reply.

        Args:
            reason: Description of the failure, kept as error_message
        """
        if self._ftp is None:
            return
        self._state = ConnectionState.ERROR
        self._error_message = reason
        self._discard()
        address = self._config.address if self._config else "server"
        logger.warning(f"Dropping connection to {address}: {reason}")

    def touch(self) -> None:
        """Update last activity timestamp."""
        self._last_activity = datetime.now()

    def _create_ftp(self, config: FtpSessionConfig) -> FTP:
        if config.proxy is not None:
            return Socks5FTP(config.proxy, timeout=config.timeout)
        return FTP(timeout=config.timeout)

    def _discard(self) -> None:
        """Drop the handle without talking to the server."""
        if self._ftp is not None:
            try:
                self._ftp.close()
            except OSError as e:
                logger.debug(f"Error closing socket: {e}")
        self._ftp = None
