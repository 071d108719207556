"""Tracking comment lifecycle.

One tracking comment reports progress for one task:
  create_initial_comment   → posted before any other work, id returned
  update_tracking_comment  → branch link appended, only when a branch was created
  read_comment_body        → inspected by the self-review loop guard
  post_self_review_comment → new comment pointing back at the tracking comment

Comments on review threads (pull_request_review_comment events) are posted
as replies in the thread and edited through the review-comment endpoint;
everything else is an issue comment on the entity.
"""

from __future__ import annotations

import logging

from claudebot_core.context import PULL_REQUEST_REVIEW_COMMENT, EventContext
from claudebot_core.gh.client import RepositoryClient
from claudebot_core.markers import SELF_REVIEW_MARKER

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://github.com"

_SELF_REVIEW_CHECKLIST = """\
1. **Code Quality**: Are there any potential bugs, security issues, or performance concerns?
2. **Best Practices**: Does the implementation follow established patterns and conventions?
3. **Edge Cases**: Are all edge cases properly handled?
4. **Documentation**: Is the code properly documented?
5. **Testing**: Are there adequate tests for the changes?
6. **Improvements**: What could be done better?"""


def _repo_url(context: EventContext, server_url: str) -> str:
    return f"{server_url.rstrip('/')}/{context.repository.owner}/{context.repository.repo}"


def job_run_link(context: EventContext, server_url: str = DEFAULT_SERVER_URL) -> str:
    return f"[View job run]({_repo_url(context, server_url)}/actions/runs/{context.run_id})"


def branch_link(context: EventContext, branch: str, server_url: str = DEFAULT_SERVER_URL) -> str:
    return f"[View branch]({_repo_url(context, server_url)}/tree/{branch})"


def build_initial_body(context: EventContext, server_url: str = DEFAULT_SERVER_URL) -> str:
    return f"Claude Code is working…\n\nI'll analyze this and get back to you.\n\n{job_run_link(context, server_url)}"


def build_self_review_body(context: EventContext, comment_id: int | None, server_url: str = DEFAULT_SERVER_URL) -> str:
    body = (
        f"{SELF_REVIEW_MARKER}\n"
        f"{context.inputs.trigger_phrase} Please review the changes you just made:\n\n"
        f"{_SELF_REVIEW_CHECKLIST}"
    )
    if comment_id:
        repo_url = _repo_url(context, server_url)
        if _is_review_thread(context):
            url = f"{repo_url}/pull/{context.entity_number}#discussion_r{comment_id}"
        else:
            url = f"{repo_url}/issues/{context.entity_number}#issuecomment-{comment_id}"
        body += f"\n\nReference: Original task [comment #{comment_id}]({url})"
    return body


def _is_review_thread(context: EventContext) -> bool:
    return context.event_name == PULL_REQUEST_REVIEW_COMMENT and context.comment_id is not None


def create_initial_comment(
    client: RepositoryClient,
    context: EventContext,
    server_url: str = DEFAULT_SERVER_URL,
) -> int:
    body = build_initial_body(context, server_url)
    if _is_review_thread(context):
        comment_id = client.create_review_comment_reply(context.entity_number, context.comment_id, body)
    else:
        comment_id = client.create_issue_comment(context.entity_number, body)
    logger.info("Created tracking comment %s on #%s", comment_id, context.entity_number)
    return comment_id


def read_comment_body(client: RepositoryClient, context: EventContext, comment_id: int) -> str:
    if _is_review_thread(context):
        return client.get_review_comment(context.entity_number, comment_id)
    return client.get_issue_comment(context.entity_number, comment_id)


def update_tracking_comment(
    client: RepositoryClient,
    context: EventContext,
    comment_id: int,
    branch: str,
    server_url: str = DEFAULT_SERVER_URL,
) -> str:
    """Append a link to the working branch. Returns the new body."""
    current = read_comment_body(client, context, comment_id)
    body = f"{current}\n{branch_link(context, branch, server_url)}"
    if _is_review_thread(context):
        client.update_review_comment(context.entity_number, comment_id, body)
    else:
        client.update_issue_comment(context.entity_number, comment_id, body)
    logger.info("Linked branch %s in tracking comment %s", branch, comment_id)
    return body


def post_self_review_comment(
    client: RepositoryClient,
    context: EventContext,
    comment_id: int | None,
    server_url: str = DEFAULT_SERVER_URL,
) -> int:
    body = build_self_review_body(context, comment_id, server_url)
    new_id = client.create_issue_comment(context.entity_number, body)
    logger.info("Created self-review comment %s (tracking comment %s)", new_id, comment_id)
    return new_id
