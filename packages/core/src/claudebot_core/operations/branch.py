"""Branch lifecycle: decide where the task's commits go.

Pull request tasks work directly on the PR head branch. Issue tasks get a
fresh working branch cut from the base branch. The name is derived from the
issue number and the workflow run id, so a re-run of the same workflow run
lands on the same branch instead of creating a second one.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from claudebot_core.context import EventContext
from claudebot_core.data.models import TaskData
from claudebot_core.errors import BranchExistsError, RemoteOperationError
from claudebot_core.gh.client import RepositoryClient

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_PREFIX = "claude/"

_UNSAFE_REF_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class BranchInfo:
    base_branch: str
    claude_branch: str | None  # None when reusing an existing PR branch
    current_branch: str


def working_branch_name(entity_number: int, task_id: str, prefix: str = DEFAULT_BRANCH_PREFIX) -> str:
    """claude/issue-42-<task_id>. Deterministic for a given issue and task id.

    Raises ValueError when task_id has no ref-safe characters.
    """
    safe_id = _UNSAFE_REF_CHARS.sub("-", str(task_id or "")).strip("-")
    if not safe_id:
        raise ValueError(f"Task id {task_id!r} cannot be used in a branch name.")
    return f"{prefix}issue-{entity_number}-{safe_id}"


def setup_branch(
    client: RepositoryClient,
    task_data: TaskData,
    context: EventContext,
    branch_prefix: str = DEFAULT_BRANCH_PREFIX,
    checkout: Callable[[str], None] | None = None,
) -> BranchInfo:
    if context.is_pr:
        head = task_data.context_data.head_ref
        base = task_data.context_data.base_ref
        if not head or not base:
            raise RemoteOperationError(f"Pull request #{context.entity_number} data has no head/base branch.")
        logger.info("PR #%s: working on existing branch %s (base %s)", context.entity_number, head, base)
        if checkout is not None:
            checkout(head)
        return BranchInfo(base_branch=base, claude_branch=None, current_branch=head)

    base = context.inputs.base_branch or client.get_default_branch()
    new_branch = working_branch_name(context.entity_number, context.run_id, branch_prefix)
    sha = client.get_branch_sha(base)

    try:
        client.create_branch(new_branch, sha)
        logger.info("Created branch %s from %s at %s", new_branch, base, sha[:7])
    except BranchExistsError:
        # Another run for the same issue and task id got there first. Same
        # name means same task, so converge on it rather than overwrite.
        logger.warning("Branch %s already exists; reusing it.", new_branch)

    if checkout is not None:
        checkout(new_branch)
    return BranchInfo(base_branch=base, claude_branch=new_branch, current_branch=new_branch)
