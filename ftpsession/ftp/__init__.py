"""FTP operations module for ftpsession.

This module wraps ftplib:
- FtpClient: Fluent client with lazy (re)connection
- FtpConnection: Connection lifecycle with state tracking
- Socks5FTP: ftplib transport tunnelled through a SOCKS5 proxy
- Listing: MLSD/LIST parsing into RemoteFile entries
- Exceptions: FtpClientError and its ErrorKind tags
"""
