"""Shared fixtures: event contexts built from realistic payloads and a mock client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from claudebot_core.context import parse_github_context
from claudebot_core.data.models import ChangedFile, CommentData, ContextData, ReviewData, TaskData
from claudebot_core.gh.client import RepositoryClient

ENV = {
    "GITHUB_REPOSITORY": "octo/widgets",
    "GITHUB_ACTOR": "alice",
    "GITHUB_RUN_ID": "9876",
}

REPOSITORY = {"name": "widgets", "owner": {"login": "octo"}}


def _user(login, user_type="User"):
    return {"login": login, "type": user_type}


def issue_comment_payload(body, login="alice", user_type="User", number=42, comment_id=555, on_pr=False):
    issue = {"number": number, "title": "Widget is broken", "body": "It crashes", "user": _user("bob")}
    if on_pr:
        issue["pull_request"] = {"url": f"https://api.github.com/repos/octo/widgets/pulls/{number}"}
    return {
        "action": "created",
        "issue": issue,
        "comment": {"id": comment_id, "body": body, "user": _user(login, user_type)},
        "repository": REPOSITORY,
        "sender": _user(login, user_type),
    }


def pull_request_payload(body="", title="Add widget", number=7, action="opened"):
    return {
        "action": action,
        "pull_request": {"number": number, "title": title, "body": body, "user": _user("alice")},
        "repository": REPOSITORY,
        "sender": _user("alice"),
    }


def review_comment_payload(body, number=7, comment_id=777):
    return {
        "action": "created",
        "pull_request": {"number": number, "title": "Add widget", "body": "", "user": _user("alice")},
        "comment": {"id": comment_id, "body": body, "user": _user("alice")},
        "repository": REPOSITORY,
        "sender": _user("alice"),
    }


def review_payload(body, number=7):
    return {
        "action": "submitted",
        "pull_request": {"number": number, "title": "Add widget", "body": "", "user": _user("alice")},
        "review": {"id": 31, "body": body, "user": _user("alice"), "state": "commented"},
        "repository": REPOSITORY,
        "sender": _user("alice"),
    }


def issues_payload(action="opened", title="Widget is broken", body="", assignee=None, number=42):
    payload = {
        "action": action,
        "issue": {"number": number, "title": title, "body": body, "user": _user("alice")},
        "repository": REPOSITORY,
        "sender": _user("alice"),
    }
    if assignee:
        payload["assignee"] = _user(assignee)
    return payload


@pytest.fixture
def make_context():
    def _make(event_name, payload, config=None, env=None):
        return parse_github_context(event_name, payload, {**ENV, **(env or {})}, config or {})

    return _make


@pytest.fixture
def comment_context(make_context):
    def _make(body, config=None, env=None, **payload_kwargs):
        return make_context("issue_comment", issue_comment_payload(body, **payload_kwargs), config, env)

    return _make


@pytest.fixture
def pr_context(make_context):
    def _make(body="", config=None, **payload_kwargs):
        return make_context("pull_request", pull_request_payload(body, **payload_kwargs), config)

    return _make


@pytest.fixture
def review_comment_context(make_context):
    def _make(body, config=None, **payload_kwargs):
        return make_context("pull_request_review_comment", review_comment_payload(body, **payload_kwargs), config)

    return _make


@pytest.fixture
def review_context(make_context):
    def _make(body, config=None, **payload_kwargs):
        return make_context("pull_request_review", review_payload(body, **payload_kwargs), config)

    return _make


@pytest.fixture
def issues_context(make_context):
    def _make(config=None, **payload_kwargs):
        return make_context("issues", issues_payload(**payload_kwargs), config)

    return _make


@pytest.fixture
def issue_data():
    return ContextData(title="Widget is broken", body="It crashes", author="bob", state="open")


@pytest.fixture
def pr_data():
    return ContextData(
        title="Add widget",
        body="Adds the widget",
        author="alice",
        state="open",
        base_ref="main",
        head_ref="feature/widget",
        head_sha="b" * 40,
    )


@pytest.fixture
def issue_task(issue_data):
    return TaskData(context_data=issue_data, trigger_username="alice")


@pytest.fixture
def pr_task(pr_data):
    return TaskData(context_data=pr_data, trigger_username="alice")


@pytest.fixture
def client(issue_data, pr_data):
    """A RepositoryClient double where every check passes."""
    mock = MagicMock(spec=RepositoryClient)
    mock.get_permission_level.return_value = "write"
    mock.get_user_type.return_value = "User"
    mock.get_default_branch.return_value = "main"
    mock.get_branch_sha.return_value = "a" * 40
    mock.create_issue_comment.return_value = 1001
    mock.create_review_comment_reply.return_value = 1002
    mock.get_issue_comment.return_value = "Claude Code is working…"
    mock.get_review_comment.return_value = "Claude Code is working…"
    mock.get_issue.return_value = issue_data
    mock.get_pull.return_value = pr_data
    mock.get_issue_comments.return_value = [
        CommentData(id=555, body="hey @claude please fix this", author="alice", created_at="2025-01-01T00:00:00+00:00")
    ]
    mock.get_pull_files.return_value = [ChangedFile(path="src/widget.py", status="modified", additions=3, deletions=1)]
    mock.get_pull_reviews.return_value = [ReviewData(id=31, author="carol", state="COMMENTED", body="Looks odd")]
    return mock
