"""Fluent FTP client for ftpsession.

FtpClient collects its configuration through chained ``with_*`` calls
and connects lazily: every operation first makes sure a live
connection exists. Example::

    with FtpClient().with_host("ftp.example.com") \\
            .with_username("user").with_password("secret") as client:
        client.cd("incoming").put("hello.txt", "hello world")
        data = client.get("hello.txt").read()

The client is NOT thread-safe; use one instance per thread.
"""

import ftplib
import io
import logging
import os
from ftplib import FTP, error_perm
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from ftpsession.config.credentials import CredentialManager
from ftpsession.config.settings import FtpSessionConfig, ProxyConfig, SettingsManager
from ftpsession.ftp.connection import ConnectionState, FtpConnection, check_reply
from ftpsession.ftp.exceptions import ErrorKind, FtpClientError
from ftpsession.ftp.listing import (
    FileFilter,
    RemoteFile,
    accept_all,
    exclude_directories,
    from_mlsd,
    parse_list_line,
)
from ftpsession.ftp.transfer import AsciiDecoder, AsciiEncoder, FileType
from ftpsession.utils.validators import validate_remote_name, validate_upload_source

logger = logging.getLogger("ftpsession.client")

# Anything put() and append() accept as file content
Source = Union[str, bytes, os.PathLike, BinaryIO]


class FtpClient:
    """Convenience wrapper for executing FTP commands."""

    # Block size for FTP transfers (8KB)
    BLOCK_SIZE = 8192

    def __init__(
        self,
        config: Optional[FtpSessionConfig] = None,
        connection: Optional[FtpConnection] = None,
    ):
        """
        Initialize the client. No connection is made until needed.

        Args:
            config: Initial configuration, empty by default
            connection: Connection manager to use
        """
        self._config = config or FtpSessionConfig()
        self._connection = connection or FtpConnection()
        # cd() paths since login, replayed after a dropped connection
        self._directories: List[str] = []

    @classmethod
    def from_config(cls, config: FtpSessionConfig) -> "FtpClient":
        """Build an unconnected client around an existing configuration."""
        return cls(config)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[SettingsManager] = None,
        credentials: Optional[CredentialManager] = None,
    ) -> "FtpClient":
        """
        Build a client from the saved profile and the keyring passwords.

        Args:
            settings: Settings manager, defaults to the platform settings file
            credentials: Credential manager, defaults to the system keyring

        Returns:
            Unconnected FtpClient
        """
        config = (settings or SettingsManager()).load()
        return cls((credentials or CredentialManager()).resolve(config))

    def save_settings(
        self,
        settings: Optional[SettingsManager] = None,
        credentials: Optional[CredentialManager] = None,
    ) -> "FtpClient":
        """
        Persist the current configuration for from_settings().

        The profile goes to the settings file; the login and proxy
        passwords go to the keyring.

        Args:
            settings: Settings manager, defaults to the platform settings file
            credentials: Credential manager, defaults to the system keyring

        Returns:
            This client
        """
        (settings or SettingsManager()).save(self._config)
        (credentials or CredentialManager()).store(self._config)
        return self

    @property
    def config(self) -> FtpSessionConfig:
        """Current configuration."""
        return self._config

    @property
    def state(self) -> ConnectionState:
        """State of the underlying connection."""
        return self._connection.state

    @property
    def is_connected(self) -> bool:
        """True if a live, logged-in control connection exists."""
        return self._connection.is_connected

    def __enter__(self) -> "FtpClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Configuration

    def with_host(self, host: str) -> "FtpClient":
        self._config = self._replace(host=host)
        return self

    def with_port(self, port: Optional[int]) -> "FtpClient":
        self._config = self._replace(port=port)
        return self

    def with_timeout(self, timeout: int) -> "FtpClient":
        self._config = self._replace(timeout=timeout)
        return self

    def with_username(self, username: Optional[str]) -> "FtpClient":
        return self._reconfigure_identity(username=username)

    def with_password(self, password: Optional[str]) -> "FtpClient":
        return self._reconfigure_identity(password=password)

    def with_proxy(self, proxy: Optional[ProxyConfig]) -> "FtpClient":
        return self._reconfigure_identity(proxy=proxy)

    def _replace(self, **changes) -> FtpSessionConfig:
        try:
            return self._config.replace(**changes)
        except ValueError as e:
            raise FtpClientError.invalid_argument(str(e)) from e

    def _reconfigure_identity(self, **changes) -> "FtpClient":
        """
        Change a login identity field.

        A live connection was authenticated with the old values, so it
        is closed before the new configuration takes effect. The next
        operation reconnects with the new values.
        """
        config = self._replace(**changes)
        if self._connection.state != ConnectionState.DISCONNECTED:
            logger.debug(f"Changing {', '.join(changes)}, closing connection to {self._config.address}")
            self.close()
        self._config = config
        return self

    # Connection lifecycle

    def connect(self) -> "FtpClient":
        """
        Open a new connection, replacing any live one.

        Returns:
            This client

        Raises:
            FtpClientError: If connecting or logging in fails
        """
        if self._connection.state != ConnectionState.DISCONNECTED:
            self.close()
        self._connection.connect(self._config)
        self._directories = []
        return self

    def close(self) -> "FtpClient":
        """Close the connection to the FTP server. Safe to call when closed."""
        if self._connection.state != ConnectionState.DISCONNECTED:
            self._connection.disconnect()
        return self

    def _ensure_connected(self) -> FTP:
        """
        Return a live ftplib handle, connecting if necessary.

        After a dropped connection (state ERROR) the working directory
        of the lost session is restored on the new one.
        """
        if not self._connection.is_connected:
            dropped = self._connection.state == ConnectionState.ERROR
            directories = self._directories if dropped else []
            logger.debug(f"No live connection to {self._config.address}, connecting")
            self.connect()
            for remote_path in directories:
                self.cd(remote_path)
            if directories:
                logger.info(f"Restored working directory after reconnect: {directories!r}")
        return self._connection.ftp

    # Operations

    def cd(self, remote_path: str) -> "FtpClient":
        """
        Change the current working directory of the FTP session.

        Args:
            remote_path: The new working directory

        Returns:
            This client
        """
        ftp = self._ensure_connected()
        command = f"CWD {remote_path}"
        try:
            reply = ftp.cwd(remote_path)
        except ftplib.all_errors as e:
            raise self._transport_error(e, command) from e
        check_reply(reply, command)
        if remote_path.startswith("/"):
            self._directories = []
        self._directories.append(remote_path)
        self._connection.touch()
        return self

    def put(
        self,
        remote: Union[str, os.PathLike],
        source: Optional[Source] = None,
        file_type: FileType = FileType.BINARY,
    ) -> "FtpClient":
        """
        Store content as a file on the server, replacing any existing file.

        ``source`` may be a str (stored as UTF-8), bytes, a local file
        path or a binary file object. A file object is always closed
        when the call returns. ``put(path)`` uploads a local file under
        its own name.

        Args:
            remote: Name of the remote file, or a local path when source is omitted
            source: Content to store
            file_type: Transfer type, BINARY unless ASCII is requested

        Returns:
            This client

        Raises:
            FtpClientError: INVALID_ARGUMENT for a missing or empty remote
                name, otherwise on any transfer failure
        """
        return self._upload("STOR", remote, source, file_type)

    def append(
        self,
        remote: Union[str, os.PathLike],
        source: Optional[Source] = None,
        file_type: FileType = FileType.BINARY,
    ) -> "FtpClient":
        """Like put(), but appends to the remote file instead of replacing it."""
        return self._upload("APPE", remote, source, file_type)

    def get(self, remote: str, file_type: FileType = FileType.BINARY) -> io.BytesIO:
        """
        Retrieve a remote file into memory.

        The server must answer RETR with a positive preliminary (1xx)
        reply before any data is read, and with a 2xx reply once the
        transfer completes.

        Args:
            remote: Name of the remote file
            file_type: Transfer type, BINARY unless ASCII is requested

        Returns:
            Buffer positioned at the start of the file content

        Raises:
            FtpClientError: If the file does not exist or the transfer fails
        """
        is_valid, error = validate_remote_name(remote)
        if not is_valid:
            raise FtpClientError.invalid_argument(error)

        ftp = self._ensure_connected()
        self._set_file_type(ftp, file_type)
        command = f"RETR {remote}"
        decoder = AsciiDecoder() if file_type == FileType.ASCII else None

        try:
            conn = ftp.transfercmd(command)
        except ftplib.all_errors as e:
            raise self._transport_error(e, command) from e

        buffer = io.BytesIO()
        received = 0
        try:
            with conn:
                while True:
                    block = conn.recv(self.BLOCK_SIZE)
                    if not block:
                        break
                    received += len(block)
                    buffer.write(decoder.decode(block) if decoder else block)
                if decoder:
                    buffer.write(decoder.flush())
        except ftplib.all_errors as e:
            raise self._interrupted(e, command, remote, received) from e
        reply = self._final_reply(ftp, command, remote, received)
        check_reply(reply, command)

        self._connection.touch()
        logger.debug(f"Retrieved '{remote}' ({received} bytes)")
        buffer.seek(0)
        return buffer

    def ls(
        self,
        directory: Optional[str] = None,
        file_filter: Optional[FileFilter] = None,
    ) -> List[RemoteFile]:
        """
        List entries of a directory.

        Args:
            directory: Directory to list, the working directory if None
            file_filter: Predicate selecting entries, all entries if None

        Returns:
            Matching entries sorted by name
        """
        ftp = self._ensure_connected()
        file_filter = file_filter or accept_all
        try:
            entries = self._list_entries(ftp, directory)
        except ftplib.all_errors as e:
            raise self._transport_error(e, f"Listing of '{directory or '.'}'") from e

        result = [entry for entry in entries if entry is not None and file_filter(entry)]
        result.sort(key=lambda entry: entry.name)
        self._connection.touch()
        return result

    def list(
        self,
        directory: Optional[str] = None,
        file_filter: Optional[FileFilter] = None,
    ) -> List[str]:
        """
        List file names in a directory.

        Without a filter, directories are left out; use ls() to see
        every entry.

        Args:
            directory: Directory to list, the working directory if None
            file_filter: Predicate over RemoteFile entries, replacing the
                default that excludes directories

        Returns:
            Matching names sorted alphabetically
        """
        entries = self.ls(directory, file_filter or exclude_directories)
        return [entry.name for entry in entries]

    # Internals

    def _set_file_type(self, ftp: FTP, file_type: FileType) -> None:
        command = file_type.command
        try:
            reply = ftp.voidcmd(command)
        except ftplib.all_errors as e:
            raise self._transport_error(e, command) from e
        check_reply(reply, command)

    def _list_entries(self, ftp: FTP, directory: Optional[str]) -> List[Optional[RemoteFile]]:
        """Read a listing with MLSD, falling back to LIST when unsupported."""
        try:
            return [from_mlsd(name, facts) for name, facts in ftp.mlsd(directory or "")]
        except error_perm as e:
            logger.debug(f"MLSD rejected ({str(e).strip()}), falling back to LIST")

        lines: List[str] = []
        if directory:
            ftp.dir(directory, lines.append)
        else:
            ftp.dir(lines.append)
        return [parse_list_line(line) for line in lines]

    def _upload(
        self,
        verb: str,
        remote: Union[str, os.PathLike, None],
        source: Optional[Source],
        file_type: FileType,
    ) -> "FtpClient":
        if source is None and isinstance(remote, os.PathLike):
            source = remote
            remote = Path(remote).name

        stream = self._open_source(source)
        try:
            is_valid, error = validate_remote_name(remote)
            if not is_valid:
                raise FtpClientError.invalid_argument(error)

            ftp = self._ensure_connected()
            self._set_file_type(ftp, file_type)
            sent = self._send(ftp, f"{verb} {remote}", remote, stream, file_type)
        finally:
            stream.close()

        self._connection.touch()
        logger.info(f"{verb} '{remote}' complete ({sent} bytes)")
        return self

    def _open_source(self, source: Optional[Source]) -> BinaryIO:
        if source is None:
            raise FtpClientError.invalid_argument("Nothing to upload: source is required")
        if isinstance(source, str):
            return io.BytesIO(source.encode("utf-8"))
        if isinstance(source, (bytes, bytearray, memoryview)):
            return io.BytesIO(bytes(source))
        if isinstance(source, os.PathLike):
            is_valid, error = validate_upload_source(source)
            if not is_valid:
                raise FtpClientError.invalid_argument(error)
            try:
                return open(source, "rb")
            except OSError as e:
                raise FtpClientError(f"Cannot open '{source}'", ErrorKind.IO, original_error=e) from e
        if hasattr(source, "read"):
            return source
        raise FtpClientError.invalid_argument(
            f"Unsupported upload source: {type(source).__name__}"
        )

    def _send(
        self,
        ftp: FTP,
        command: str,
        remote: str,
        stream: BinaryIO,
        file_type: FileType,
    ) -> int:
        """Stream the source over a data connection, returning bytes sent."""
        encoder = AsciiEncoder() if file_type == FileType.ASCII else None
        try:
            conn = ftp.transfercmd(command)
        except ftplib.all_errors as e:
            raise self._transport_error(e, command) from e

        sent = 0
        try:
            with conn:
                while True:
                    block = stream.read(self.BLOCK_SIZE)
                    if not block:
                        break
                    if isinstance(block, str):
                        block = block.encode("utf-8")
                    if encoder:
                        block = encoder.encode(block)
                    conn.sendall(block)
                    sent += len(block)
        except ftplib.all_errors as e:
            raise self._interrupted(e, command, remote, sent) from e
        except Exception:
            self._connection.abandon(f"{command} interrupted by the source stream")
            raise
        reply = self._final_reply(ftp, command, remote, sent)
        check_reply(reply, command)
        return sent

    def _final_reply(self, ftp: FTP, command: str, remote: str, transferred: int) -> str:
        """Read the completion reply that follows a data transfer."""
        try:
            return ftp.voidresp()
        except ftplib.all_errors as e:
            error = self._transport_error(e, command)
            if transferred:
                error = FtpClientError.partial_transfer(remote, transferred, e)
            raise error from e

    def _transport_error(self, error: Exception, operation: str) -> FtpClientError:
        """
        Wrap a transport error, dropping the connection unless the server answered.

        An ftplib.Error means a complete reply was read and the control
        channel is still in step. Anything else (socket errors, EOF,
        timeouts) may leave a reply unread, so the handle is abandoned
        and the next operation reconnects.
        """
        if not isinstance(error, ftplib.Error):
            self._connection.abandon(f"{operation} failed: {error}")
        return FtpClientError.from_transport_error(error, operation)

    def _interrupted(
        self,
        error: Exception,
        command: str,
        remote: str,
        transferred: int,
    ) -> FtpClientError:
        """
        Handle a failure inside a data transfer loop.

        The server's completion reply for the command is still pending
        on the control channel, so the connection is always abandoned.
        """
        self._connection.abandon(f"{command} interrupted after {transferred} bytes: {error}")
        if transferred:
            return FtpClientError.partial_transfer(remote, transferred, error)
        return FtpClientError.from_transport_error(error, command)
