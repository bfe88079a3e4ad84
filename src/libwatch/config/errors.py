"""Exceptions raised while loading libwatch settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but cannot be used (wrong type, out of range)."""


class MissingConfigurationError(ConfigurationError):
    """A required environment variable is unset or blank."""
