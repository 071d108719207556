"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. OVERRIDE_GITHUB_TOKEN (a token supplied explicitly to the action, e.g. a
     GitHub App installation token minted by an earlier step)
  2. GITHUB_TOKEN environment variable (the token Actions injects)
  3. `gh auth token` (GitHub CLI session, for local runs)
"""

from __future__ import annotations

import logging
import os
import subprocess

from claudebot_core.errors import AuthenticationError

logger = logging.getLogger(__name__)

_ENV_TOKENS = ("OVERRIDE_GITHUB_TOKEN", "GITHUB_TOKEN")


def resolve_github_token(environ: dict | None = None) -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises; acquire_token() is the strict variant.
    """
    env = os.environ if environ is None else environ
    for name in _ENV_TOKENS:
        token = env.get(name)
        if token:
            logger.debug("Resolved GitHub token from %s.", name)
            return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out.
        pass

    return None


def acquire_token(environ: dict | None = None) -> str:
    """Return a GitHub token or raise AuthenticationError."""
    token = resolve_github_token(environ)
    if not token:
        raise AuthenticationError(
            "No GitHub token found. Set GITHUB_TOKEN (or OVERRIDE_GITHUB_TOKEN) or run `gh auth login` first."
        )
    return token
