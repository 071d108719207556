"""Trigger detection: does this event ask claudebot to do something?

A missing trigger is not an error. The prepare run exits cleanly and posts
nothing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from claudebot_core.context import (
    ISSUE_COMMENT,
    ISSUES,
    PULL_REQUEST,
    PULL_REQUEST_REVIEW,
    PULL_REQUEST_REVIEW_COMMENT,
    EventContext,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerDecision:
    contains_trigger: bool
    source: str | None = None  # which field matched, e.g. "comment_body"


NO_TRIGGER = TriggerDecision(contains_trigger=False)


def contains_trigger_phrase(text: str | None, phrase: str) -> bool:
    """Case-sensitive, word-bounded match of phrase in text.

    "@claude" matches "hey @claude please" and "@claude!" but not
    "@claudebot" or "mail@claude".
    """
    if not text or not phrase:
        return False
    pattern = rf"(^|\s){re.escape(phrase)}([\s.,!?;:]|$)"
    return re.search(pattern, text) is not None


def _check_assignee(context: EventContext) -> bool:
    trigger_user = (context.inputs.assignee_trigger or "").lstrip("@")
    if not trigger_user:
        return False
    assignee = (context.payload.get("assignee") or {}).get("login", "")
    return assignee == trigger_user


def check_trigger_action(context: EventContext) -> TriggerDecision:
    phrase = context.inputs.trigger_phrase
    payload = context.payload

    if context.inputs.direct_prompt:
        return TriggerDecision(True, "direct_prompt")

    if context.event_name == ISSUES:
        if context.event_action == "assigned" and _check_assignee(context):
            return TriggerDecision(True, "assignee")
        if context.event_action == "opened":
            issue = payload.get("issue") or {}
            if contains_trigger_phrase(issue.get("body"), phrase):
                return TriggerDecision(True, "issue_body")
            if contains_trigger_phrase(issue.get("title"), phrase):
                return TriggerDecision(True, "issue_title")
        return NO_TRIGGER

    if context.event_name == PULL_REQUEST:
        pr = payload.get("pull_request") or {}
        if contains_trigger_phrase(pr.get("body"), phrase):
            return TriggerDecision(True, "pr_body")
        if contains_trigger_phrase(pr.get("title"), phrase):
            return TriggerDecision(True, "pr_title")
        return NO_TRIGGER

    if context.event_name == PULL_REQUEST_REVIEW:
        review = payload.get("review") or {}
        if contains_trigger_phrase(review.get("body"), phrase):
            return TriggerDecision(True, "review_body")
        return NO_TRIGGER

    if context.event_name in (ISSUE_COMMENT, PULL_REQUEST_REVIEW_COMMENT):
        if contains_trigger_phrase(context.comment_body, phrase):
            return TriggerDecision(True, "comment_body")
        return NO_TRIGGER

    logger.debug("Event %s is not a supported trigger source", context.event_name)
    return NO_TRIGGER
