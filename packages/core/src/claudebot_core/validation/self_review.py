"""Self-review loop guard.

After a task finishes, claudebot may post a comment asking itself to review
its own work. That comment carries SELF_REVIEW_MARKER and, because it
mentions the trigger phrase, starts another prepare run. Two checks keep
this from looping forever:

(a) Incoming: is_self_review_request() recognizes the bot's own request so
    the prepare run can skip the actor checks (a bot would fail them).
    Marker text alone is not enough, since anyone can paste it; the author
    must also pass the trusted-self-review predicate.

(b) Outgoing: should_post_self_review() reads the previous tracking comment
    and suppresses the request when the last review concluded there is
    nothing left to do. If the read fails the request is posted anyway.
"""

from __future__ import annotations

import logging
from typing import Callable

from claudebot_core.context import ISSUE_COMMENT, ActorRef, EventContext
from claudebot_core.errors import LoopGuardReadError
from claudebot_core.gh.client import RepositoryClient
from claudebot_core.markers import (
    SELF_REVIEW_BOT_LOGIN,
    SELF_REVIEW_BOT_TYPE,
    has_no_further_action_marker,
    has_self_review_marker,
)
from claudebot_core.operations.comments import read_comment_body

logger = logging.getLogger(__name__)

TrustedSelfReviewPredicate = Callable[[ActorRef], bool]


class BotIdentityPredicate:
    """Trust a comment author when both account type and login match the bot."""

    def __init__(self, login: str = SELF_REVIEW_BOT_LOGIN, account_type: str = SELF_REVIEW_BOT_TYPE):
        self.login = login
        self.account_type = account_type

    def __call__(self, author: ActorRef) -> bool:
        return author.type == self.account_type and author.login == self.login


DEFAULT_PREDICATE: TrustedSelfReviewPredicate = BotIdentityPredicate()


def is_self_review_request(
    context: EventContext,
    predicate: TrustedSelfReviewPredicate = DEFAULT_PREDICATE,
) -> bool:
    if context.event_name != ISSUE_COMMENT:
        return False
    if not has_self_review_marker(context.comment_body):
        return False
    author = context.comment_author
    return author is not None and predicate(author)


def _read_prior_body(client: RepositoryClient, context: EventContext, comment_id: int) -> str:
    try:
        return read_comment_body(client, context, comment_id)
    except Exception as e:
        raise LoopGuardReadError(f"Could not read tracking comment {comment_id}: {e}") from e


def should_post_self_review(client: RepositoryClient, context: EventContext, comment_id: int | None) -> bool:
    """Return False only when the prior tracking comment says no further action is needed."""
    if not comment_id:
        logger.info("No prior tracking comment to inspect; posting self-review request.")
        return True

    try:
        body = _read_prior_body(client, context, comment_id)
    except LoopGuardReadError as e:
        logger.warning("%s; posting self-review request anyway.", e)
        return True

    if has_no_further_action_marker(body):
        logger.info("Tracking comment %s reports no further action needed; skipping self-review.", comment_id)
        return False
    return True
