"""Utility module for ftpsession.

This module provides cross-cutting utilities:
- Logging: Configured logging with credential redaction
- Validators: Input validation for hosts, ports, names and paths
"""
