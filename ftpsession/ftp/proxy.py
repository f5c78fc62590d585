"""SOCKS5 proxy transport for ftpsession.

ftplib opens its sockets with socket.create_connection(); Socks5FTP
replaces both the control connection and the passive data
connections with PySocks sockets that tunnel through the proxy.
"""

import socket
from ftplib import FTP, error_reply, parse150
from typing import Any, Optional, Tuple

import socks

from ftpsession.config.settings import ProxyConfig


class Socks5FTP(FTP):
    """ftplib.FTP that routes every connection through a SOCKS5 proxy."""

    def __init__(self, proxy: ProxyConfig, **kwargs: Any) -> None:
        self.proxy = proxy
        super().__init__(**kwargs)

    def _proxied_socket(self, timeout: Optional[float]) -> socks.socksocket:
        sock = socks.socksocket(socket.AF_INET, socket.SOCK_STREAM)
        sock.set_proxy(
            socks.SOCKS5,
            self.proxy.host,
            self.proxy.port,
            rdns=True,
            username=self.proxy.username,
            password=self.proxy.password,
        )
        if timeout is not None:
            sock.settimeout(timeout)
        return sock

    def connect(
        self,
        host: str = "",
        port: int = 0,
        timeout: float = -999,
        source_address: Optional[Tuple[str, int]] = None,
    ) -> str:
        """Connect to the FTP server through the proxy and read the welcome."""
        if host:
            self.host = host
        if port > 0:
            self.port = port
        if timeout != -999:
            self.timeout = timeout
        if self.timeout is not None and not self.timeout:
            raise ValueError("Non-blocking socket (timeout=0) is not supported")

        self.sock = self._proxied_socket(self.timeout)
        self.sock.connect((self.host, self.port))
        self.af = self.sock.family
        self.file = self.sock.makefile("r", encoding=self.encoding)
        self.welcome = self.getresp()
        return self.welcome

    def ntransfercmd(self, cmd: str, rest: Optional[int] = None):
        """Open a passive data connection through the proxy and send cmd."""
        if not self.passiveserver:
            raise error_reply("Active mode is not supported through a SOCKS5 proxy")

        host, port = self.makepasv()
        conn = self._proxied_socket(self.timeout)
        conn.connect((host, port))
        size = None
        try:
            if rest is not None:
                self.sendcmd(f"REST {rest}")
            resp = self.sendcmd(cmd)
            # Some servers reply 2xx before the 1xx preliminary reply
            if resp[0] == "2":
                resp = self.getresp()
            if resp[0] != "1":
                raise error_reply(resp)
        except Exception:
            conn.close()
            raise
        if resp[:3] == "150":
            size = parse150(resp)
        return conn, size

