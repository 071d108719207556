"""Task data handed from the fetcher to branch setup and prompt creation.

Plain dataclasses so the decision logic never touches PyGithub objects
directly; only claudebot_core.gh.client knows about those.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CommentData:
    id: int
    body: str
    author: str
    created_at: str = ""  # ISO-8601 UTC timestamp


@dataclass
class ChangedFile:
    path: str
    status: str  # "added" | "modified" | "removed" | "renamed"
    additions: int = 0
    deletions: int = 0


@dataclass
class ReviewData:
    id: int
    author: str
    state: str  # "APPROVED" | "COMMENTED" | "CHANGES_REQUESTED" | ...
    body: str = ""


@dataclass
class ContextData:
    """Metadata of the issue or pull request the task is about."""

    title: str
    body: str
    author: str
    state: str
    # Pull requests only.
    base_ref: str | None = None
    head_ref: str | None = None
    head_sha: str | None = None


@dataclass
class TaskData:
    context_data: ContextData
    comments: list[CommentData] = field(default_factory=list)
    changed_files: list[ChangedFile] = field(default_factory=list)
    reviews: list[ReviewData] = field(default_factory=list)
    trigger_username: str = ""
