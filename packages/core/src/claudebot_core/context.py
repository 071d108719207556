"""Normalized view of the GitHub event that started a run.

The Actions runtime hands us an event name and a JSON payload (the file at
GITHUB_EVENT_PATH). parse_github_context() turns those into an EventContext
once per run; everything downstream reads the context, never the raw
environment.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from claudebot_core.config import parse_list_input
from claudebot_core.errors import MalformedEventError

ISSUE_COMMENT = "issue_comment"
ISSUES = "issues"
PULL_REQUEST = "pull_request"
PULL_REQUEST_REVIEW = "pull_request_review"
PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"

SUPPORTED_EVENTS = (
    ISSUE_COMMENT,
    ISSUES,
    PULL_REQUEST,
    PULL_REQUEST_REVIEW,
    PULL_REQUEST_REVIEW_COMMENT,
)

_PR_EVENTS = (PULL_REQUEST, PULL_REQUEST_REVIEW, PULL_REQUEST_REVIEW_COMMENT)


@dataclass(frozen=True)
class RepositoryRef:
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ActorRef:
    """A GitHub account as it appears in an event payload."""

    login: str
    type: str  # "User" | "Bot" | "Organization"


@dataclass(frozen=True)
class ContextInputs:
    trigger_phrase: str = "@claude"
    assignee_trigger: str | None = None
    allowed_tools: tuple[str, ...] = ()
    disallowed_tools: tuple[str, ...] = ()
    custom_instructions: str | None = None
    direct_prompt: str | None = None
    base_branch: str | None = None


@dataclass(frozen=True)
class EventContext:
    run_id: str
    event_name: str
    event_action: str | None
    repository: RepositoryRef
    actor: str
    entity_number: int
    is_pr: bool
    payload: dict = field(default_factory=dict, compare=False)
    inputs: ContextInputs = field(default_factory=ContextInputs)

    @property
    def comment(self) -> dict | None:
        return self.payload.get("comment")

    @property
    def comment_id(self) -> int | None:
        comment = self.comment
        return comment.get("id") if comment else None

    @property
    def comment_body(self) -> str:
        comment = self.comment
        return (comment.get("body") or "") if comment else ""

    @property
    def comment_author(self) -> ActorRef | None:
        comment = self.comment
        if not comment or not comment.get("user"):
            return None
        user = comment["user"]
        return ActorRef(login=user.get("login", ""), type=user.get("type", ""))


def _entity(event_name: str, payload: dict) -> tuple[dict | None, bool]:
    """Return the issue/PR object the event is about and whether it is a PR."""
    if event_name in _PR_EVENTS:
        return payload.get("pull_request"), True
    issue = payload.get("issue")
    # issue_comment events fire for PR conversation comments too; the issue
    # object then carries a pull_request key.
    is_pr = bool(issue and issue.get("pull_request"))
    return issue, is_pr


def _repository(payload: dict, env: Mapping[str, str]) -> RepositoryRef:
    repo_obj = payload.get("repository") or {}
    owner = (repo_obj.get("owner") or {}).get("login")
    name = repo_obj.get("name")
    if owner and name:
        return RepositoryRef(owner=owner, repo=name)

    slug = env.get("GITHUB_REPOSITORY", "")
    if "/" in slug:
        owner, name = slug.split("/", 1)
        return RepositoryRef(owner=owner, repo=name)
    raise MalformedEventError("Event is missing the repository (payload.repository or GITHUB_REPOSITORY).")


def build_inputs(config: Mapping[str, Any]) -> ContextInputs:
    return ContextInputs(
        trigger_phrase=config.get("trigger_phrase") or "@claude",
        assignee_trigger=config.get("assignee_trigger") or None,
        allowed_tools=tuple(parse_list_input(config.get("allowed_tools"))),
        disallowed_tools=tuple(parse_list_input(config.get("disallowed_tools"))),
        custom_instructions=config.get("custom_instructions") or None,
        direct_prompt=config.get("direct_prompt") or None,
        base_branch=config.get("base_branch") or None,
    )


def parse_github_context(
    event_name: str,
    payload: dict | None,
    env: Mapping[str, str] | None = None,
    config: Mapping[str, Any] | None = None,
) -> EventContext:
    """Build the EventContext for one run. Raises MalformedEventError."""
    env = {} if env is None else env
    config = {} if config is None else config

    if not event_name:
        raise MalformedEventError("GITHUB_EVENT_NAME is not set.")
    if event_name not in SUPPORTED_EVENTS:
        raise MalformedEventError(f"Unsupported event type: {event_name}")
    if not isinstance(payload, dict) or not payload:
        raise MalformedEventError(f"Event payload for {event_name} is empty.")

    entity, is_pr = _entity(event_name, payload)
    if not entity or entity.get("number") is None:
        raise MalformedEventError(f"Event payload for {event_name} has no issue or pull request number.")

    actor = env.get("GITHUB_ACTOR") or (payload.get("sender") or {}).get("login")
    if not actor:
        raise MalformedEventError("Event has no actor (GITHUB_ACTOR or payload.sender).")

    repository = _repository(payload, env)
    run_id = env.get("GITHUB_RUN_ID")
    if not run_id:
        # Branch names embed the run id; an empty one would collide across runs.
        raise MalformedEventError("GITHUB_RUN_ID is not set.")

    return EventContext(
        run_id=run_id,
        event_name=event_name,
        event_action=payload.get("action"),
        repository=repository,
        actor=actor,
        entity_number=int(entity["number"]),
        is_pr=is_pr,
        payload=payload,
        inputs=build_inputs(config),
    )


def load_github_context(
    env: Mapping[str, str] | None = None,
    config: Mapping[str, Any] | None = None,
) -> EventContext:
    """Read GITHUB_EVENT_NAME and the JSON at GITHUB_EVENT_PATH, then parse."""
    env = os.environ if env is None else env
    event_path = env.get("GITHUB_EVENT_PATH")
    if not event_path:
        raise MalformedEventError("GITHUB_EVENT_PATH is not set.")
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise MalformedEventError(f"Could not read event payload at {event_path}: {e}") from e
    return parse_github_context(env.get("GITHUB_EVENT_NAME", ""), payload, env, config)
