"""Error taxonomy for claudebot runs.

Every error here except LoopGuardReadError is fatal to the run that raised
it. The workflow layer catches them at the top level, reports the
message as a run output and exits non-zero. Nothing is differentiated for
retry: a rate limit and a 404 end the run the same way.
"""

from __future__ import annotations


class ClaudeBotError(Exception):
    """Base class for every error a claudebot run can raise."""


class AuthenticationError(ClaudeBotError):
    """No usable GitHub credential could be resolved."""


class AuthorizationError(ClaudeBotError):
    """The triggering actor is not allowed to start a task."""


class ActorKindError(AuthorizationError):
    """The triggering actor is not a human account and is not a trusted self-review."""


class MalformedEventError(ClaudeBotError):
    """The inbound event payload is missing fields the run depends on."""


class RemoteOperationError(ClaudeBotError):
    """Any failure reported by the GitHub API: network, rate limit, not found, conflict."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class BranchExistsError(RemoteOperationError):
    """Creating a branch ref failed because the ref is already present."""


class LoopGuardReadError(ClaudeBotError):
    """The prior tracking comment could not be read.

    Never surfaced to the run: the loop guard downgrades it to "no marker found".
    """
