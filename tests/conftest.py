"""Pytest configuration and shared fixtures for ftpsession tests."""

import io

import pytest
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock, patch


PUT_FILE_CONTENT = "testing put file"
PUT_ANOTHER_FILE_CONTENT = (
    "\"I wumbo, you wumbo, he-she-me wumbo.\n"
    "Wumboing, wumbology, the study of wumbo!\n"
    "It's first grade Spongebob\""
)


def make_mock_ftp() -> MagicMock:
    """Build an ftplib.FTP stand-in that answers every command positively."""
    mock_ftp = MagicMock()
    mock_ftp.connect.return_value = "220 Service ready"
    mock_ftp.login.return_value = "230 User logged in"
    mock_ftp.voidcmd.return_value = "200 Type set"
    mock_ftp.cwd.return_value = "250 Directory changed"
    mock_ftp.voidresp.return_value = "226 Transfer complete"
    mock_ftp.quit.return_value = "221 Goodbye"
    mock_ftp.mlsd.return_value = iter([])
    return mock_ftp


@pytest.fixture
def mock_ftp() -> Generator[MagicMock, None, None]:
    """Patch ftplib.FTP in the connection module with a positive mock."""
    with patch("ftpsession.ftp.connection.FTP") as mock_ftp_class:
        ftp = make_mock_ftp()
        mock_ftp_class.return_value = ftp
        yield ftp


@pytest.fixture
def put_file(tmp_path: Path) -> Path:
    """Create a local put_file.txt."""
    path = tmp_path / "put_file.txt"
    path.write_text(PUT_FILE_CONTENT, encoding="utf-8")
    return path


@pytest.fixture
def put_another_file(tmp_path: Path) -> Path:
    """Create a local put_another_file.txt."""
    path = tmp_path / "put_another_file.txt"
    path.write_text(PUT_ANOTHER_FILE_CONTENT, encoding="utf-8")
    return path


@pytest.fixture
def temp_settings_file(tmp_path: Path) -> Path:
    """Provide a temporary settings file path for testing."""
    return tmp_path / "settings.json"


class FailingStream(io.BytesIO):
    """Upload source that yields one block and then fails to read."""

    def __init__(self, block_size: int = 8192):
        super().__init__(b"x" * (block_size * 2))
        self.block_size = block_size
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if self.reads > 1:
            raise OSError("Input/output error")
        return super().read(size)
