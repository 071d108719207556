"""Run-mode orchestration: the prepare run and the post-self-review run.

Each run is a single pass through a fixed sequence of steps. A step that
raises moves the run straight to FAILED: the message is written as a run
output, an error annotation is emitted and the result carries exit code 1.
Nothing is retried and nothing already posted is rolled back.

A prepare run on an event without the trigger phrase ends in SKIPPED. That
is a clean exit, not a failure.

Collaborators (token provider, client factory, context loader, checkout)
are injected so the state machines can be driven entirely by test doubles.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from rich.console import Console

from claudebot_core.auth import acquire_token
from claudebot_core.context import EventContext, load_github_context
from claudebot_core.data.fetcher import fetch_github_data
from claudebot_core.data.models import TaskData
from claudebot_core.errors import AuthorizationError
from claudebot_core.gh.client import GithubRepositoryClient, RepositoryClient
from claudebot_core.gh.git import checkout_branch
from claudebot_core.mcp import prepare_mcp_config
from claudebot_core.operations.branch import BranchInfo, setup_branch
from claudebot_core.operations.comments import (
    create_initial_comment,
    post_self_review_comment,
    update_tracking_comment,
)
from claudebot_core.outputs import ActionOutputs
from claudebot_core.prompt import create_prompt
from claudebot_core.validation.actor import check_human_actor
from claudebot_core.validation.permissions import check_write_permissions
from claudebot_core.validation.self_review import (
    BotIdentityPredicate,
    TrustedSelfReviewPredicate,
    is_self_review_request,
    should_post_self_review,
)
from claudebot_core.validation.trigger import check_trigger_action

console = Console()
logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, EventContext], RepositoryClient]


class PrepareState(str, Enum):
    START = "start"
    TOKEN_ACQUIRED = "token-acquired"
    TRIGGER_CHECKED = "trigger-checked"
    SELF_REVIEW_CLASSIFIED = "self-review-classified"
    AUTHORIZED = "authorized"
    DATA_FETCHED = "data-fetched"
    COMMENT_CREATED = "comment-created"
    BRANCH_RESOLVED = "branch-resolved"
    COMMENT_UPDATED = "comment-updated"
    PROMPT_PREPARED = "prompt-prepared"
    CONFIG_PREPARED = "config-prepared"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class SelfReviewState(str, Enum):
    START = "start"
    TOKEN_ACQUIRED = "token-acquired"
    PRIOR_COMMENT_CHECKED = "prior-comment-checked"
    SUPPRESSED = "suppressed"
    COMMENT_POSTED = "comment-posted"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PrepareResult:
    state: PrepareState = PrepareState.START
    history: list[PrepareState] = field(default_factory=lambda: [PrepareState.START])
    exit_code: int = 0
    error: str | None = None
    contains_trigger: bool = False
    is_self_review: bool = False
    comment_id: int | None = None
    branch_info: BranchInfo | None = None
    task_data: TaskData | None = None
    prompt_file: Path | None = None
    mcp_config: str | None = None


@dataclass
class SelfReviewResult:
    state: SelfReviewState = SelfReviewState.START
    history: list[SelfReviewState] = field(default_factory=lambda: [SelfReviewState.START])
    exit_code: int = 0
    error: str | None = None
    posted_comment_id: int | None = None


def _default_client_factory(config: dict) -> ClientFactory:
    def factory(token: str, context: EventContext) -> RepositoryClient:
        return GithubRepositoryClient(token, context.repository, api_url=config.get("github_api_url"))

    return factory


def _error_message(e: Exception) -> str:
    return str(e) or type(e).__name__


class _Workflow:
    def __init__(
        self,
        config: dict,
        outputs: ActionOutputs | None = None,
        token_provider: Callable[[], str] = acquire_token,
        client_factory: ClientFactory | None = None,
        context_loader: Callable[[], EventContext] | None = None,
    ):
        self.config = config
        self.outputs = outputs if outputs is not None else ActionOutputs()
        self.token_provider = token_provider
        self.client_factory = client_factory or _default_client_factory(config)
        self.context_loader = context_loader or (lambda: load_github_context(os.environ, config))

    @property
    def server_url(self) -> str:
        return self.config.get("github_server_url") or "https://github.com"


class PrepareWorkflow(_Workflow):
    """start → token → trigger → self-review? → authorized → data → comment
    → branch → comment updated → prompt → MCP config → done.
    """

    def __init__(
        self,
        config: dict,
        outputs: ActionOutputs | None = None,
        token_provider: Callable[[], str] = acquire_token,
        client_factory: ClientFactory | None = None,
        context_loader: Callable[[], EventContext] | None = None,
        predicate: TrustedSelfReviewPredicate | None = None,
        checkout: Callable[[str], None] | None = None,
        runner_temp: str | None = None,
    ):
        super().__init__(config, outputs, token_provider, client_factory, context_loader)
        login = config.get("self_review_bot_login")
        self.predicate = predicate or (BotIdentityPredicate(login) if login else BotIdentityPredicate())
        if checkout is None and config.get("local_checkout", True):
            checkout = checkout_branch
        self.checkout = checkout
        self.runner_temp = runner_temp

    def _advance(self, result: PrepareResult, state: PrepareState) -> None:
        result.state = state
        result.history.append(state)
        logger.debug("prepare: %s", state.value)

    def run(self) -> PrepareResult:
        result = PrepareResult()
        try:
            self._run(result)
        except Exception as e:
            message = _error_message(e)
            logger.error("Prepare failed in state %s: %s", result.state.value, message)
            self._advance(result, PrepareState.FAILED)
            result.error = message
            result.exit_code = 1
            self.outputs.set_failed(f"Prepare step failed with error: {message}")
            self.outputs.set_output("prepare_error", message)
        return result

    def _run(self, result: PrepareResult) -> None:
        token = self.token_provider()
        context = self.context_loader()
        client = self.client_factory(token, context)
        self._advance(result, PrepareState.TOKEN_ACQUIRED)

        decision = check_trigger_action(context)
        result.contains_trigger = decision.contains_trigger
        self.outputs.set_output("contains_trigger", "true" if decision.contains_trigger else "false")
        self._advance(result, PrepareState.TRIGGER_CHECKED)
        if not decision.contains_trigger:
            console.print("[yellow]No trigger found, skipping remaining steps[/yellow]")
            self._advance(result, PrepareState.SKIPPED)
            return
        logger.info("Trigger found in %s", decision.source)

        result.is_self_review = is_self_review_request(context, self.predicate)
        self._advance(result, PrepareState.SELF_REVIEW_CLASSIFIED)

        if result.is_self_review:
            console.print("[cyan]Self-review request from the bot itself; skipping actor and permission checks.[/cyan]")
        else:
            if not check_write_permissions(client, context):
                raise AuthorizationError("Actor does not have write permissions to the repository")
            check_human_actor(client, context)
        self._advance(result, PrepareState.AUTHORIZED)

        result.task_data = fetch_github_data(client, context)
        self._advance(result, PrepareState.DATA_FETCHED)

        result.comment_id = create_initial_comment(client, context, self.server_url)
        self.outputs.set_output("claude_comment_id", result.comment_id)
        self._advance(result, PrepareState.COMMENT_CREATED)

        branch_info = setup_branch(
            client,
            result.task_data,
            context,
            branch_prefix=self.config.get("branch_prefix") or "claude/",
            checkout=self.checkout,
        )
        result.branch_info = branch_info
        self.outputs.set_output("base_branch", branch_info.base_branch)
        if branch_info.claude_branch:
            self.outputs.set_output("claude_branch", branch_info.claude_branch)
        self.outputs.set_output("current_branch", branch_info.current_branch)
        self._advance(result, PrepareState.BRANCH_RESOLVED)

        if branch_info.claude_branch:
            update_tracking_comment(client, context, result.comment_id, branch_info.claude_branch, self.server_url)
        self._advance(result, PrepareState.COMMENT_UPDATED)

        result.prompt_file = create_prompt(
            result.comment_id, branch_info, result.task_data, context, runner_temp=self.runner_temp
        )
        self.outputs.set_output("prompt_file", result.prompt_file)
        self._advance(result, PrepareState.PROMPT_PREPARED)

        result.mcp_config = prepare_mcp_config(
            token,
            context,
            branch_info.current_branch,
            result.comment_id,
            additional_mcp_config=self.config.get("mcp_config"),
            server_url=self.server_url,
        )
        self.outputs.set_output("mcp_config", result.mcp_config)
        self._advance(result, PrepareState.CONFIG_PREPARED)

        console.print(
            f"[green]Prepared task for #{context.entity_number} on {branch_info.current_branch} "
            f"(tracking comment {result.comment_id}).[/green]"
        )
        self._advance(result, PrepareState.DONE)


class SelfReviewWorkflow(_Workflow):
    """start → token → prior comment checked → (suppressed | comment posted) → done."""

    def _advance(self, result: SelfReviewResult, state: SelfReviewState) -> None:
        result.state = state
        result.history.append(state)
        logger.debug("self-review: %s", state.value)

    def run(self, comment_id: int | None) -> SelfReviewResult:
        result = SelfReviewResult()
        try:
            self._run(result, comment_id)
        except Exception as e:
            message = _error_message(e)
            logger.error("Self-review failed in state %s: %s", result.state.value, message)
            self._advance(result, SelfReviewState.FAILED)
            result.error = message
            result.exit_code = 1
            self.outputs.set_failed(f"Post self-review comment failed: {message}")
            self.outputs.set_output("self_review_error", message)
        return result

    def _run(self, result: SelfReviewResult, comment_id: int | None) -> None:
        token = self.token_provider()
        context = self.context_loader()
        client = self.client_factory(token, context)
        self._advance(result, SelfReviewState.TOKEN_ACQUIRED)

        post = should_post_self_review(client, context, comment_id)
        self._advance(result, SelfReviewState.PRIOR_COMMENT_CHECKED)

        if not post:
            console.print("[green]No further improvements needed; self-review request not posted.[/green]")
            self.outputs.set_output("self_review_skipped", "true")
            self._advance(result, SelfReviewState.SUPPRESSED)
        else:
            result.posted_comment_id = post_self_review_comment(client, context, comment_id, self.server_url)
            console.print(f"[green]Created self-review comment with ID: {result.posted_comment_id}[/green]")
            self.outputs.set_output("self_review_comment_id", result.posted_comment_id)
            self._advance(result, SelfReviewState.COMMENT_POSTED)

        self._advance(result, SelfReviewState.DONE)
