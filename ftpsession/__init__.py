"""ftpsession - a fluent, lazily connecting FTP client.

Quick Start:
    from pathlib import Path
    from ftpsession import FtpClient, FileType

    client = (FtpClient()
              .with_host("ftp.example.com")
              .with_username("user")
              .with_password("secret"))
    client.cd("upload").put("report.csv", Path("report.csv"))
    names = client.list()
    data = client.get("image.png", FileType.BINARY).read()
    client.close()
"""

from ftpsession.config.settings import FtpSessionConfig, ProxyConfig
from ftpsession.ftp.client import FtpClient
from ftpsession.ftp.connection import ConnectionState
from ftpsession.ftp.exceptions import ErrorKind, FtpClientError
from ftpsession.ftp.listing import RemoteFile, RemoteFileType
from ftpsession.ftp.transfer import FileType

__all__ = [
    "FtpClient",
    "FileType",
    "FtpSessionConfig",
    "ProxyConfig",
    "ConnectionState",
    "RemoteFile",
    "RemoteFileType",
    "FtpClientError",
    "ErrorKind",
]

__version__ = "1.0.0"
