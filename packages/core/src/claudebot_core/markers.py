"""Sentinel strings embedded in comment bodies.

Comment bodies are the only persisted state claudebot has: there is no
database, and one workflow phase is told apart from another purely by the
markers below. All matching goes through the helpers in this module so the
literals live in exactly one place.
"""

from __future__ import annotations

# Embedded (as an HTML comment, invisible when rendered) in every self-review
# request the bot posts.
SELF_REVIEW_MARKER = "<!-- claude-self-review -->"

# Written by the agent into its tracking comment when a review concluded that
# nothing else should change. Its presence stops the self-review chain.
NO_FURTHER_ACTION_MARKER = "No further improvements needed"

# The identity GitHub Actions posts comments under when using GITHUB_TOKEN.
SELF_REVIEW_BOT_LOGIN = "github-actions[bot]"
SELF_REVIEW_BOT_TYPE = "Bot"

# How each guarded check behaves when it cannot reach a verdict.
#   closed → abort the run
#   open   → proceed as if the check passed
FAILURE_POLICY: dict[str, str] = {
    "write_permission": "closed",
    "human_actor": "closed",
    "loop_guard_read": "open",
}


def has_self_review_marker(body: str | None) -> bool:
    return SELF_REVIEW_MARKER in (body or "")


def has_no_further_action_marker(body: str | None) -> bool:
    return NO_FURTHER_ACTION_MARKER in (body or "")
