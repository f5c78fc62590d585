"""Transfer types and ASCII line-ending translation.

In ASCII mode (TYPE A) FTP carries text with CRLF line endings. Data
is streamed in blocks, so a CR/LF pair can straddle two blocks; both
converters keep the state needed to handle that.
"""

import re
from enum import Enum

_BARE_LF = re.compile(rb"(?<!\r)\n")


class FileType(Enum):
    """Transfer type, valued with the FTP TYPE code."""
    ASCII = "A"
    BINARY = "I"

    @property
    def command(self) -> str:
        return f"TYPE {self.value}"


class AsciiEncoder:
    """Converts bare LF to CRLF for upload."""

    def __init__(self):
        self._last = b""

    def encode(self, block: bytes) -> bytes:
        if not block:
            return b""
        encoded = _BARE_LF.sub(b"\r\n", block)
        if self._last == b"\r" and block[:1] == b"\n":
            # the CR arrived at the end of the previous block
            encoded = encoded[1:]
        self._last = block[-1:]
        return encoded


class AsciiDecoder:
    """Converts CRLF to LF for download."""

    def __init__(self):
        self._pending_cr = False

    def decode(self, block: bytes) -> bytes:
        if self._pending_cr:
            block = b"\r" + block
            self._pending_cr = False
        if block.endswith(b"\r"):
            block = block[:-1]
            self._pending_cr = True
        return block.replace(b"\r\n", b"\n")

    def flush(self) -> bytes:
        """Return a trailing CR held back from the last block, if any."""
        if self._pending_cr:
            self._pending_cr = False
            return b"\r"
        return b""
