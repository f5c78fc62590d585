"""Error type for ftpsession.

Every failure surfaced by the client is an FtpClientError. The kind of
failure is carried as a tag rather than expressed through subclasses, so
callers can catch one type and branch on ``error.kind``.
"""

import socket
from enum import Enum
from ftplib import Error as FtplibError
from typing import Optional


class ErrorKind(Enum):
    """Category of an FtpClientError."""
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    NOT_CONNECTED = "not_connected"
    REPLY = "reply"
    IO = "io"
    INVALID_ARGUMENT = "invalid_argument"
    PARTIAL_TRANSFER = "partial_transfer"


class FtpClientError(Exception):
    """Raised for transport failures, unfavorable replies and bad arguments."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.IO,
        original_error: Exception = None,
        reply: Optional[str] = None,
        bytes_transferred: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.original_error = original_error
        self.reply = reply
        self.bytes_transferred = bytes_transferred

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message

    @property
    def is_partial_transfer(self) -> bool:
        """True if some bytes moved before the transfer failed."""
        return self.kind == ErrorKind.PARTIAL_TRANSFER

    @classmethod
    def from_reply(cls, reply: str, operation: str = "Command") -> "FtpClientError":
        """Build an error for an unfavorable server reply."""
        reply = reply.strip()
        return cls(f"{operation} failed: {reply}", ErrorKind.REPLY, reply=reply)

    @classmethod
    def from_transport_error(
        cls,
        error: Exception,
        operation: str = "Command",
    ) -> "FtpClientError":
        """
        Wrap an exception raised by ftplib or the socket layer.

        ftplib raises its own errors for 4xx/5xx and unexpected replies;
        the reply text is the exception's argument.

        Args:
            error: Exception raised by the transport
            operation: Human-readable name of the failed operation

        Returns:
            FtpClientError tagged with the matching kind
        """
        if isinstance(error, FtplibError):
            reply = str(error).strip()
            return cls(
                f"{operation} failed",
                ErrorKind.REPLY,
                original_error=error,
                reply=reply,
            )
        if isinstance(error, socket.timeout):
            return cls(f"{operation} timed out", ErrorKind.TIMEOUT, original_error=error)
        return cls(f"{operation} failed", ErrorKind.IO, original_error=error)

    @classmethod
    def invalid_argument(cls, message: str) -> "FtpClientError":
        return cls(message, ErrorKind.INVALID_ARGUMENT)

    @classmethod
    def not_connected(cls, operation: str = "Operation") -> "FtpClientError":
        return cls(
            f"{operation} requires an active FTP connection",
            ErrorKind.NOT_CONNECTED,
        )

    @classmethod
    def partial_transfer(
        cls,
        remote: str,
        bytes_transferred: int,
        original_error: Exception = None,
    ) -> "FtpClientError":
        """Build an error for a transfer that broke off after moving data."""
        return cls(
            f"Transfer of '{remote}' interrupted after {bytes_transferred} bytes",
            ErrorKind.PARTIAL_TRANSFER,
            original_error=original_error,
            bytes_transferred=bytes_transferred,
        )
