"""Input validators for ftpsession.

Every validator returns an ``(is_valid, error_message)`` tuple; callers
decide whether a failure becomes a ValueError or an FtpClientError.
"""

import ipaddress
import os
import re
from pathlib import Path
from typing import Optional, Tuple, Union

# DNS name: dot-separated labels of letters, digits and inner hyphens
HOSTNAME_PATTERN = re.compile(
    r'^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$'
)

# Inclusive bounds of the socket timeout, in seconds
MIN_TIMEOUT = 5
MAX_TIMEOUT = 300


def validate_host(host: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate an FTP server host.

    Accepts IPv4 and IPv6 literals as well as DNS hostnames.

    Args:
        host: Host string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not host or not host.strip():
        return False, "Host is required"

    host = host.strip()

    try:
        ipaddress.ip_address(host)
        return True, None
    except ValueError:
        pass

    # Dotted quads that failed above are bad addresses, not hostnames
    if not host.replace(".", "").isdigit() and HOSTNAME_PATTERN.match(host):
        return True, None

    return False, f"Invalid host: {host}. Must be a valid IP address or hostname."


def validate_port(port: Optional[int]) -> Tuple[bool, Optional[str]]:
    """
    Validate a port number. None means "use the protocol default".

    Args:
        port: Port number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if port is None:
        return True, None

    if isinstance(port, bool) or not isinstance(port, int):
        return False, "Port must be an integer"

    if not 1 <= port <= 65535:
        return False, f"Port must be between 1 and 65535, got {port}"

    return True, None


def validate_timeout(timeout: int) -> Tuple[bool, Optional[str]]:
    """
    Validate a timeout value in seconds.

    Args:
        timeout: Timeout in seconds

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        seconds = int(timeout)
    except (ValueError, TypeError):
        return False, "Timeout must be a number"

    if not MIN_TIMEOUT <= seconds <= MAX_TIMEOUT:
        return False, (
            f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds, got {timeout}"
        )

    return True, None


def validate_remote_name(remote: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate the name of a remote file used as a transfer target.

    Args:
        remote: Remote file name or path

    Returns:
        Tuple of (is_valid, error_message)
    """
    if remote is None:
        return False, "Remote file name is required"

    if not isinstance(remote, str):
        return False, f"Remote file name must be a string, got {type(remote).__name__}"

    if not remote:
        return False, "Remote file name must not be empty"

    # A line break would inject a second command on the control channel
    if "\r" in remote or "\n" in remote:
        return False, "Remote file name must not contain line breaks"

    return True, None


def validate_upload_source(path: Union[str, os.PathLike]) -> Tuple[bool, Optional[str]]:
    """
    Validate a local file that is about to be uploaded.

    Args:
        path: Local file path

    Returns:
        Tuple of (is_valid, error_message)
    """
    path = Path(path)

    if not path.exists():
        return False, f"Local file does not exist: {path}"

    if not path.is_file():
        return False, f"Local path is not a regular file: {path}"

    if not os.access(path, os.R_OK):
        return False, f"Local file is not readable: {path}"

    return True, None
