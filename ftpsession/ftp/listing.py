"""Remote directory entries for ftpsession.

Converts MLSD facts and LIST lines into RemoteFile values. A line that
cannot be parsed yields None and is dropped by the caller.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional


class RemoteFileType(Enum):
    """Type of a directory entry on the server."""
    FILE = "file"
    DIRECTORY = "directory"
    LINK = "link"


@dataclass
class RemoteFile:
    """A file, directory or link as reported by a directory listing."""
    name: str
    type: RemoteFileType = RemoteFileType.FILE
    size: Optional[int] = None
    modified: Optional[datetime] = None
    permissions: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.type == RemoteFileType.FILE

    @property
    def is_directory(self) -> bool:
        return self.type == RemoteFileType.DIRECTORY

    def __str__(self) -> str:
        return self.name


# Predicate applied to listing entries
FileFilter = Callable[[RemoteFile], bool]


def accept_all(remote_file: RemoteFile) -> bool:
    return True


def exclude_directories(remote_file: RemoteFile) -> bool:
    """Default filter of FtpClient.list(): files and links, no directories."""
    return not remote_file.is_directory


# Unix "ls -l" style, e.g. "-rw-r--r--   1 user group  1024 Jan 15 10:30 a.txt"
UNIX_LIST_PATTERN = re.compile(
    r"^([\-dlbcps])([rwxsStT\-]{9})\S*\s+\d+\s+\S+\s+\S+\s+(\d+)\s+"
    r"(\w{3}\s+\d{1,2}\s+(?:\d{1,2}:\d{2}|\d{4}))\s+(.+)$"
)

# DOS style, e.g. "01-15-23  10:30AM       1024 a.txt"
WINDOWS_LIST_PATTERN = re.compile(
    r"^(\d{2}-\d{2}-\d{2,4}\s+\d{1,2}:\d{2}[AP]M)\s+(<DIR>|\d+)\s+(.+)$"
)

_SPECIAL_NAMES = (".", "..")


def from_mlsd(name: str, facts: Dict[str, str]) -> Optional[RemoteFile]:
    """
    Build a RemoteFile from one MLSD entry.

    Args:
        name: Entry name as returned by ftplib.FTP.mlsd()
        facts: Lower-cased MLSD facts

    Returns:
        RemoteFile, or None for the current/parent directory entries
    """
    entry_type = facts.get("type", "").lower()
    if entry_type in ("cdir", "pdir") or name in _SPECIAL_NAMES:
        return None

    if entry_type == "dir":
        file_type = RemoteFileType.DIRECTORY
    elif entry_type.startswith("os.unix=symlink") or entry_type.startswith("os.unix=slink"):
        file_type = RemoteFileType.LINK
    else:
        file_type = RemoteFileType.FILE

    size = None
    if "size" in facts:
        try:
            size = int(facts["size"])
        except ValueError:
            size = None

    modified = None
    if "modify" in facts:
        # YYYYMMDDHHMMSS[.sss], UTC
        try:
            modified = datetime.strptime(facts["modify"].split(".")[0], "%Y%m%d%H%M%S")
        except ValueError:
            modified = None

    return RemoteFile(
        name=name,
        type=file_type,
        size=size,
        modified=modified,
        permissions=facts.get("unix.mode") or facts.get("perm"),
    )


def parse_list_line(line: str, now: Optional[datetime] = None) -> Optional[RemoteFile]:
    """
    Parse one line of LIST output.

    Args:
        line: Raw listing line
        now: Reference time for Unix dates that omit the year

    Returns:
        RemoteFile, or None if the line is not a recognized entry
    """
    line = line.rstrip("\r\n")

    unix_match = UNIX_LIST_PATTERN.match(line)
    if unix_match:
        kind, permissions, size, date_str, name = unix_match.groups()
        if kind == "d":
            file_type = RemoteFileType.DIRECTORY
        elif kind == "l":
            file_type = RemoteFileType.LINK
            name = name.split(" -> ", 1)[0]
        else:
            file_type = RemoteFileType.FILE
        if name in _SPECIAL_NAMES:
            return None
        return RemoteFile(
            name=name,
            type=file_type,
            size=int(size),
            modified=_parse_unix_date(date_str, now or datetime.now()),
            permissions=permissions,
        )

    windows_match = WINDOWS_LIST_PATTERN.match(line)
    if windows_match:
        date_str, dir_or_size, name = windows_match.groups()
        is_dir = dir_or_size == "<DIR>"
        if name in _SPECIAL_NAMES:
            return None
        modified = None
        for fmt in ("%m-%d-%y %I:%M%p", "%m-%d-%Y %I:%M%p"):
            try:
                modified = datetime.strptime(" ".join(date_str.split()), fmt)
                break
            except ValueError:
                continue
        return RemoteFile(
            name=name,
            type=RemoteFileType.DIRECTORY if is_dir else RemoteFileType.FILE,
            size=None if is_dir else int(dir_or_size),
            modified=modified,
        )

    return None


def _parse_unix_date(date_str: str, now: datetime) -> Optional[datetime]:
    date_str = " ".join(date_str.split())
    try:
        return datetime.strptime(date_str, "%b %d %Y")
    except ValueError:
        pass
    try:
        # Recent entries carry a time instead of the year
        modified = datetime.strptime(f"{now.year} {date_str}", "%Y %b %d %H:%M")
    except ValueError:
        return None
    if modified > now:
        try:
            modified = modified.replace(year=now.year - 1)
        except ValueError:
            # Feb 29 of a leap year
            modified = modified.replace(year=now.year - 1, day=28)
    return modified
