"""Local git operations on the Actions checkout."""

from __future__ import annotations

import logging
import subprocess

from claudebot_core.errors import RemoteOperationError

logger = logging.getLogger(__name__)


def _git(*args: str, cwd: str | None = None) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=120,
            cwd=cwd,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise RemoteOperationError(f"git {' '.join(args)} failed: {e}") from e
    if result.returncode != 0:
        raise RemoteOperationError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout.strip()


def checkout_branch(branch: str, cwd: str | None = None) -> None:
    """Fetch a branch from origin and switch the working tree to it."""
    logger.info("Checking out %s", branch)
    _git("fetch", "origin", f"{branch}:refs/remotes/origin/{branch}", cwd=cwd)
    _git("checkout", "-B", branch, f"origin/{branch}", cwd=cwd)
