"""Repository client: the only seam between claudebot and the GitHub API.

RepositoryClient is the capability set the decision logic depends on. The
workflows receive a client rather than building one, so tests substitute a
MagicMock(spec=RepositoryClient) and assert exactly which calls happen.

GithubRepositoryClient implements it with PyGithub. Every GithubException and
every requests transport error is re-raised as RemoteOperationError; the
core does not differentiate 404 from 403 from a rate limit.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

import requests
from github import Auth, Github, GithubException

from claudebot_core.context import RepositoryRef
from claudebot_core.data.models import ChangedFile, CommentData, ContextData, ReviewData
from claudebot_core.errors import BranchExistsError, RemoteOperationError

logger = logging.getLogger(__name__)


class RepositoryClient(ABC):
    """Operations against one repository on behalf of one run."""

    # -- authorization ---------------------------------------------------

    @abstractmethod
    def get_permission_level(self, username: str) -> str:
        """Return the collaborator permission: "admin", "write", "read" or "none"."""

    @abstractmethod
    def get_user_type(self, username: str) -> str:
        """Return the account type: "User", "Bot" or "Organization"."""

    # -- branches --------------------------------------------------------

    @abstractmethod
    def get_default_branch(self) -> str: ...

    @abstractmethod
    def get_branch_sha(self, branch: str) -> str: ...

    @abstractmethod
    def create_branch(self, branch: str, sha: str) -> None:
        """Create refs/heads/<branch> at sha. Raises BranchExistsError if the ref exists."""

    # -- comments --------------------------------------------------------

    @abstractmethod
    def create_issue_comment(self, number: int, body: str) -> int: ...

    @abstractmethod
    def get_issue_comment(self, number: int, comment_id: int) -> str:
        """Return the current body of an issue (or PR conversation) comment."""

    @abstractmethod
    def update_issue_comment(self, number: int, comment_id: int, body: str) -> None: ...

    @abstractmethod
    def create_review_comment_reply(self, pr_number: int, in_reply_to: int, body: str) -> int: ...

    @abstractmethod
    def get_review_comment(self, pr_number: int, comment_id: int) -> str: ...

    @abstractmethod
    def update_review_comment(self, pr_number: int, comment_id: int, body: str) -> None: ...

    # -- task data -------------------------------------------------------

    @abstractmethod
    def get_issue(self, number: int) -> ContextData: ...

    @abstractmethod
    def get_pull(self, number: int) -> ContextData: ...

    @abstractmethod
    def get_issue_comments(self, number: int) -> list[CommentData]: ...

    @abstractmethod
    def get_pull_files(self, number: int) -> list[ChangedFile]: ...

    @abstractmethod
    def get_pull_reviews(self, number: int) -> list[ReviewData]: ...


def _describe(e: GithubException) -> str:
    data = e.data if isinstance(e.data, dict) else {}
    message = data.get("message") or str(e)
    return f"{message} (HTTP {e.status})" if e.status else message


@contextmanager
def github_call(action: str) -> Iterator[None]:
    """Translate PyGithub and transport failures into RemoteOperationError."""
    try:
        yield
    except GithubException as e:
        logger.debug("GitHub call failed during %s: %s", action, e)
        raise RemoteOperationError(f"Failed to {action}: {_describe(e)}", status=e.status) from e
    except requests.exceptions.RequestException as e:
        # Transport failures (connection reset, timeout) are not wrapped by PyGithub.
        logger.debug("GitHub request failed during %s: %s", action, e)
        raise RemoteOperationError(f"Failed to {action}: {e}") from e


def _login(user) -> str:
    return user.login if user is not None else ""


def _timestamp(value) -> str:
    return value.isoformat() if value is not None else ""


class GithubRepositoryClient(RepositoryClient):
    """PyGithub-backed client for a single repository."""

    def __init__(self, token: str, repository: RepositoryRef, api_url: str | None = None):
        kwargs = {"auth": Auth.Token(token)}
        if api_url:
            kwargs["base_url"] = api_url
        self._gh = Github(**kwargs)
        self._repository = repository
        self._repo = None

    @property
    def repo(self):
        # Resolved lazily so constructing a client never touches the network.
        if self._repo is None:
            with github_call(f"load repository {self._repository.full_name}"):
                self._repo = self._gh.get_repo(self._repository.full_name)
        return self._repo

    def get_permission_level(self, username: str) -> str:
        with github_call(f"check permissions for {username}"):
            return self.repo.get_collaborator_permission(username)

    def get_user_type(self, username: str) -> str:
        with github_call(f"look up user {username}"):
            return self._gh.get_user(username).type

    def get_default_branch(self) -> str:
        return self.repo.default_branch

    def get_branch_sha(self, branch: str) -> str:
        with github_call(f"read branch {branch}"):
            return self.repo.get_branch(branch).commit.sha

    def create_branch(self, branch: str, sha: str) -> None:
        try:
            self.repo.create_git_ref(ref=f"refs/heads/{branch}", sha=sha)
        except GithubException as e:
            if e.status == 422 and "already exists" in _describe(e).lower():
                raise BranchExistsError(f"Branch {branch} already exists", status=e.status) from e
            raise RemoteOperationError(f"Failed to create branch {branch}: {_describe(e)}", status=e.status) from e
        except requests.exceptions.RequestException as e:
            raise RemoteOperationError(f"Failed to create branch {branch}: {e}") from e

    def create_issue_comment(self, number: int, body: str) -> int:
        with github_call(f"comment on #{number}"):
            return self.repo.get_issue(number).create_comment(body).id

    def get_issue_comment(self, number: int, comment_id: int) -> str:
        with github_call(f"read comment {comment_id}"):
            return self.repo.get_issue(number).get_comment(comment_id).body or ""

    def update_issue_comment(self, number: int, comment_id: int, body: str) -> None:
        with github_call(f"update comment {comment_id}"):
            self.repo.get_issue(number).get_comment(comment_id).edit(body)

    def create_review_comment_reply(self, pr_number: int, in_reply_to: int, body: str) -> int:
        with github_call(f"reply to review comment {in_reply_to}"):
            return self.repo.get_pull(pr_number).create_review_comment_reply(in_reply_to, body).id

    def get_review_comment(self, pr_number: int, comment_id: int) -> str:
        with github_call(f"read review comment {comment_id}"):
            return self.repo.get_pull(pr_number).get_review_comment(comment_id).body or ""

    def update_review_comment(self, pr_number: int, comment_id: int, body: str) -> None:
        with github_call(f"update review comment {comment_id}"):
            self.repo.get_pull(pr_number).get_review_comment(comment_id).edit(body)

    def get_issue(self, number: int) -> ContextData:
        with github_call(f"read issue #{number}"):
            issue = self.repo.get_issue(number)
            return ContextData(
                title=issue.title or "",
                body=issue.body or "",
                author=_login(issue.user),
                state=issue.state,
            )

    def get_pull(self, number: int) -> ContextData:
        with github_call(f"read pull request #{number}"):
            pr = self.repo.get_pull(number)
            return ContextData(
                title=pr.title or "",
                body=pr.body or "",
                author=_login(pr.user),
                state="merged" if pr.merged else pr.state,
                base_ref=pr.base.ref,
                head_ref=pr.head.ref,
                head_sha=pr.head.sha,
            )

    def get_issue_comments(self, number: int) -> list[CommentData]:
        with github_call(f"list comments on #{number}"):
            return [
                CommentData(id=c.id, body=c.body or "", author=_login(c.user), created_at=_timestamp(c.created_at))
                for c in self.repo.get_issue(number).get_comments()
            ]

    def get_pull_files(self, number: int) -> list[ChangedFile]:
        with github_call(f"list files of pull request #{number}"):
            return [
                ChangedFile(path=f.filename, status=f.status, additions=f.additions, deletions=f.deletions)
                for f in self.repo.get_pull(number).get_files()
            ]

    def get_pull_reviews(self, number: int) -> list[ReviewData]:
        with github_call(f"list reviews of pull request #{number}"):
            return [
                ReviewData(id=r.id, author=_login(r.user), state=r.state, body=r.body or "")
                for r in self.repo.get_pull(number).get_reviews()
            ]
