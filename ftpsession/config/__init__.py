"""Configuration module for ftpsession.

This module handles connection settings and credentials:
- FtpSessionConfig / ProxyConfig: Immutable connection settings
- SettingsManager: JSON-based profile persistence
- CredentialManager: Secure password storage via keyring
- Paths: Per-user configuration directory discovery
"""
