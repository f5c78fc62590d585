"""Connection settings for ftpsession.

Provides the immutable FtpSessionConfig / ProxyConfig values consumed
by the client, and SettingsManager for persisting a connection
profile as JSON. Passwords are never written to the profile; see
CredentialManager.
"""

import json
import logging
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Optional

from ftpsession.config.paths import get_settings_path
from ftpsession.utils.validators import validate_port, validate_timeout

logger = logging.getLogger("ftpsession.settings")


@dataclass(frozen=True)
class ProxyConfig:
    """SOCKS5 proxy used for both the control and data channels."""
    host: str
    port: int = 1080
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        if not self.host:
            raise ValueError("Proxy host is required")
        is_valid, error = validate_port(self.port)
        if not is_valid:
            raise ValueError(error)

    def __repr__(self) -> str:
        password = "'***'" if self.password else None
        return (
            f"ProxyConfig(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, password={password})"
        )


@dataclass(frozen=True)
class FtpSessionConfig:
    """
    Everything needed to open and authenticate an FTP session.

    Values are immutable; the client swaps in a new instance on every
    change. A missing port means the FTP default (21) and a missing
    username means an anonymous login.
    """
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    proxy: Optional[ProxyConfig] = None
    timeout: int = 30

    def __post_init__(self):
        """Validate configuration after initialization."""
        is_valid, error = validate_port(self.port)
        if not is_valid:
            raise ValueError(error)
        is_valid, error = validate_timeout(self.timeout)
        if not is_valid:
            raise ValueError(error)

    def __repr__(self) -> str:
        password = "'***'" if self.password else None
        return (
            f"FtpSessionConfig(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, password={password}, "
            f"proxy={self.proxy!r}, timeout={self.timeout!r})"
        )

    def replace(self, **changes) -> "FtpSessionConfig":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    @property
    def address(self) -> str:
        """host:port for log messages."""
        return f"{self.host}:{self.port or 21}"

    def to_dict(self, include_password: bool = False) -> dict:
        """
        Convert the configuration to a JSON-friendly dictionary.

        Args:
            include_password: Keep the session and proxy passwords

        Returns:
            Dictionary of configuration values
        """
        data = asdict(self)
        if not include_password:
            data.pop("password", None)
            if data.get("proxy"):
                data["proxy"].pop("password", None)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "FtpSessionConfig":
        """Create a configuration from a dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        proxy = filtered.get("proxy")
        if isinstance(proxy, dict):
            proxy_fields = {f.name for f in fields(ProxyConfig)}
            filtered["proxy"] = ProxyConfig(
                **{k: v for k, v in proxy.items() if k in proxy_fields}
            )
        return cls(**filtered)


class SettingsManager:
    """Persists a connection profile between sessions."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Optional custom path, defaults to platform standard
        """
        self._config_path = config_path or get_settings_path()
        self._config: Optional[FtpSessionConfig] = None

    @property
    def config_path(self) -> Path:
        """Path to settings file."""
        return self._config_path

    def load(self) -> FtpSessionConfig:
        """
        Load the saved profile from disk.

        Returns:
            FtpSessionConfig instance (defaults if file not found or invalid)
        """
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                self._config = FtpSessionConfig.from_dict(data)
            except (json.JSONDecodeError, IOError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring unreadable settings file {self._config_path}: {e}")
                self._config = FtpSessionConfig()
        else:
            self._config = FtpSessionConfig()

        return self._config

    def save(self, config: FtpSessionConfig) -> None:
        """
        Persist a profile to disk, without passwords.

        Args:
            config: Configuration to save
        """
        self._config = config

        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)

    def reset(self) -> FtpSessionConfig:
        """
        Reset to an empty profile.

        Returns:
            Default FtpSessionConfig instance
        """
        self._config = FtpSessionConfig()

        if self._config_path.exists():
            self._config_path.unlink()

        return self._config

    def update(self, **kwargs) -> FtpSessionConfig:
        """
        Update specific profile fields and save.

        Args:
            **kwargs: Field names and new values

        Returns:
            Updated FtpSessionConfig instance
        """
        if self._config is None:
            self.load()

        valid_fields = {f.name for f in fields(FtpSessionConfig)}
        changes = {k: v for k, v in kwargs.items() if k in valid_fields}

        self.save(self._config.replace(**changes))
        return self._config
