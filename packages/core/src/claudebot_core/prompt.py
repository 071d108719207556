"""Task prompt assembly.

The prompt is written to a file under RUNNER_TEMP so the agent step that
follows the prepare step can pick it up by path.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from claudebot_core.context import EventContext
from claudebot_core.data.models import TaskData
from claudebot_core.markers import NO_FURTHER_ACTION_MARKER
from claudebot_core.operations.branch import BranchInfo

logger = logging.getLogger(__name__)

PROMPT_DIR_NAME = "claude-prompts"
PROMPT_FILE_NAME = "claude-prompt.txt"

# Keep the comment history from swamping the prompt on long threads.
_MAX_COMMENTS = 50


def _format_comments(task_data: TaskData) -> str:
    comments = task_data.comments[-_MAX_COMMENTS:]
    if not comments:
        return "No comments"
    return "\n\n".join(f"[{c.author} at {c.created_at}]: {c.body}" for c in comments)


def _format_changed_files(task_data: TaskData) -> str:
    if not task_data.changed_files:
        return ""
    lines = [f"- {f.path} ({f.status}) +{f.additions}/-{f.deletions}" for f in task_data.changed_files]
    return "\n<changed_files>\n" + "\n".join(lines) + "\n</changed_files>\n"


def _format_reviews(task_data: TaskData) -> str:
    reviews = [r for r in task_data.reviews if r.body]
    if not reviews:
        return ""
    lines = [f"[Review by {r.author}, {r.state}]: {r.body}" for r in reviews]
    return "\n<review_comments>\n" + "\n\n".join(lines) + "\n</review_comments>\n"


def build_prompt(
    comment_id: int,
    branch_info: BranchInfo,
    task_data: TaskData,
    context: EventContext,
) -> str:
    data = task_data.context_data
    kind = "pull request" if context.is_pr else "issue"

    if context.inputs.direct_prompt:
        request = f"<direct_prompt>\n{context.inputs.direct_prompt}\n</direct_prompt>"
    elif context.comment_body:
        request = f"<trigger_comment>\n{context.comment_body}\n</trigger_comment>"
    else:
        request = f"The request is in the {kind} title or body above."

    branch_lines = f"Base branch: {branch_info.base_branch}\nCurrent branch: {branch_info.current_branch}"
    if branch_info.claude_branch:
        branch_lines += (
            f"\nA new branch {branch_info.claude_branch} was created for this task; commit your changes there."
        )
    else:
        branch_lines += "\nCommit your changes directly to the current pull request branch."

    tools = ""
    if context.inputs.allowed_tools:
        tools += f"\nAllowed tools: {', '.join(context.inputs.allowed_tools)}"
    if context.inputs.disallowed_tools:
        tools += f"\nDisallowed tools: {', '.join(context.inputs.disallowed_tools)}"

    custom = ""
    if context.inputs.custom_instructions:
        custom = f"\n<custom_instructions>\n{context.inputs.custom_instructions}\n</custom_instructions>\n"

    return f"""You are Claude, an AI assistant working on GitHub {kind} #{context.entity_number} \
in {context.repository.full_name}, triggered by @{task_data.trigger_username}.

<context>
Title: {data.title}
Author: {data.author}
State: {data.state}
</context>

<body>
{data.body or "No description provided"}
</body>

<comments>
{_format_comments(task_data)}
</comments>
{_format_changed_files(task_data)}{_format_reviews(task_data)}
{request}

<branches>
{branch_lines}
</branches>
{tools}
Report progress by updating comment {comment_id} (your tracking comment). Do not create new comments.
When a review concludes that nothing else should change, say "{NO_FURTHER_ACTION_MARKER}" in that comment.
{custom}"""


def create_prompt(
    comment_id: int,
    branch_info: BranchInfo,
    task_data: TaskData,
    context: EventContext,
    runner_temp: str | None = None,
) -> Path:
    """Write the prompt file and return its path."""
    base = runner_temp or os.environ.get("RUNNER_TEMP") or tempfile.gettempdir()
    prompt_dir = Path(base) / PROMPT_DIR_NAME
    prompt_dir.mkdir(parents=True, exist_ok=True)
    path = prompt_dir / PROMPT_FILE_NAME
    path.write_text(build_prompt(comment_id, branch_info, task_data, context), encoding="utf-8")
    logger.info("Wrote prompt to %s", path)
    return path
