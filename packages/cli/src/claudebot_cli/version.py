"""Installed claudebot version."""

from __future__ import annotations

import importlib.metadata


def get_version() -> str | None:
    """Return the installed distribution version, or None when running from a bare source tree."""
    try:
        return importlib.metadata.version("claudebot")
    except importlib.metadata.PackageNotFoundError:
        return None
