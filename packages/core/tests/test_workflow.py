"""End-to-end tests for the prepare and post-self-review runs, driven by a mock client."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from claudebot_core.errors import AuthenticationError, RemoteOperationError
from claudebot_core.markers import SELF_REVIEW_MARKER
from claudebot_core.operations.comments import build_self_review_body
from claudebot_core.outputs import ActionOutputs
from claudebot_core.workflow import PrepareState, PrepareWorkflow, SelfReviewState, SelfReviewWorkflow

BOT = "github-actions[bot]"


@pytest.fixture
def outputs():
    return ActionOutputs(output_path="")


@pytest.fixture
def run_prepare(client, outputs, tmp_path):
    def _run(context, config=None, checkout=None, token_provider=None):
        workflow = PrepareWorkflow(
            {"local_checkout": False, **(config or {})},
            outputs=outputs,
            token_provider=token_provider or (lambda: "tok"),
            client_factory=lambda token, ctx: client,
            context_loader=lambda: context,
            checkout=checkout,
            runner_temp=str(tmp_path),
        )
        return workflow.run()

    return _run


@pytest.fixture
def run_self_review(client, outputs):
    def _run(context, comment_id=1001):
        workflow = SelfReviewWorkflow(
            {},
            outputs=outputs,
            token_provider=lambda: "tok",
            client_factory=lambda token, ctx: client,
            context_loader=lambda: context,
        )
        return workflow.run(comment_id)

    return _run


class TestPrepareSkipped:
    def test_no_trigger_does_nothing(self, run_prepare, client, comment_context, outputs):
        result = run_prepare(comment_context("just a regular comment"))

        assert result.state == PrepareState.SKIPPED
        assert result.exit_code == 0
        assert outputs.values == {"contains_trigger": "false"}
        client.create_issue_comment.assert_not_called()
        client.create_branch.assert_not_called()
        client.get_permission_level.assert_not_called()

    def test_history(self, run_prepare, comment_context):
        result = run_prepare(comment_context("nothing here"))
        assert result.history == [
            PrepareState.START,
            PrepareState.TOKEN_ACQUIRED,
            PrepareState.TRIGGER_CHECKED,
            PrepareState.SKIPPED,
        ]


class TestPrepareIssue:
    def test_full_run(self, run_prepare, client, comment_context, outputs, tmp_path):
        result = run_prepare(comment_context("hey @claude please fix this"))

        assert result.state == PrepareState.DONE
        assert result.exit_code == 0
        assert result.comment_id == 1001
        assert result.branch_info.claude_branch == "claude/issue-42-9876"
        client.create_branch.assert_called_once_with("claude/issue-42-9876", "a" * 40)

        number, comment_id, body = client.update_issue_comment.call_args[0]
        assert (number, comment_id) == (42, 1001)
        assert "[View branch](https://github.com/octo/widgets/tree/claude/issue-42-9876)" in body

        assert result.prompt_file == tmp_path / "claude-prompts" / "claude-prompt.txt"
        assert json.loads(result.mcp_config)["mcpServers"]["github"]["env"]["BRANCH_NAME"] == "claude/issue-42-9876"

    def test_history_order(self, run_prepare, comment_context):
        result = run_prepare(comment_context("hey @claude please fix this"))
        assert result.history == [
            PrepareState.START,
            PrepareState.TOKEN_ACQUIRED,
            PrepareState.TRIGGER_CHECKED,
            PrepareState.SELF_REVIEW_CLASSIFIED,
            PrepareState.AUTHORIZED,
            PrepareState.DATA_FETCHED,
            PrepareState.COMMENT_CREATED,
            PrepareState.BRANCH_RESOLVED,
            PrepareState.COMMENT_UPDATED,
            PrepareState.PROMPT_PREPARED,
            PrepareState.CONFIG_PREPARED,
            PrepareState.DONE,
        ]

    def test_outputs(self, run_prepare, comment_context, outputs):
        result = run_prepare(comment_context("hey @claude please fix this"))

        assert outputs.values["contains_trigger"] == "true"
        assert outputs.values["claude_comment_id"] == "1001"
        assert outputs.values["base_branch"] == "main"
        assert outputs.values["claude_branch"] == "claude/issue-42-9876"
        assert outputs.values["current_branch"] == "claude/issue-42-9876"
        assert outputs.values["prompt_file"] == str(result.prompt_file)
        assert outputs.values["mcp_config"] == result.mcp_config

    def test_checkout_called_with_new_branch(self, run_prepare, comment_context):
        checkout = MagicMock()
        run_prepare(comment_context("@claude fix"), checkout=checkout)
        checkout.assert_called_once_with("claude/issue-42-9876")

    def test_branch_prefix_from_config(self, run_prepare, comment_context):
        result = run_prepare(comment_context("@claude fix"), config={"branch_prefix": "ai/"})
        assert result.branch_info.claude_branch == "ai/issue-42-9876"

    def test_custom_server_url(self, run_prepare, client, comment_context):
        run_prepare(comment_context("@claude fix"), config={"github_server_url": "https://ghe.example.com"})
        body = client.create_issue_comment.call_args[0][1]
        assert "https://ghe.example.com/octo/widgets/actions/runs/9876" in body


class TestPreparePullRequest:
    def test_no_branch_created(self, run_prepare, client, pr_context, outputs):
        result = run_prepare(pr_context("@claude please review"))

        assert result.state == PrepareState.DONE
        assert result.branch_info.current_branch == "feature/widget"
        client.create_branch.assert_not_called()
        client.update_issue_comment.assert_not_called()
        assert "claude_branch" not in outputs.values
        assert PrepareState.COMMENT_UPDATED in result.history

    def test_review_comment_replies_in_thread(self, run_prepare, client, review_comment_context):
        result = run_prepare(review_comment_context("@claude rename this"))

        assert result.comment_id == 1002
        client.create_review_comment_reply.assert_called_once()
        client.create_issue_comment.assert_not_called()


class TestPrepareSelfReview:
    def test_bot_self_review_skips_actor_checks(self, run_prepare, client, comment_context):
        body = build_self_review_body(comment_context("x"), 1001)
        ctx = comment_context(body, login=BOT, user_type="Bot")
        client.get_user_type.return_value = "Bot"

        result = run_prepare(ctx)

        assert result.state == PrepareState.DONE
        assert result.is_self_review is True
        assert result.contains_trigger is True
        client.get_permission_level.assert_not_called()
        client.get_user_type.assert_not_called()

    def test_marker_from_human_still_checked(self, run_prepare, client, comment_context):
        ctx = comment_context(f"{SELF_REVIEW_MARKER}\n@claude go", login="mallory")
        client.get_permission_level.return_value = "read"

        result = run_prepare(ctx)

        assert result.state == PrepareState.FAILED
        assert result.is_self_review is False
        client.get_permission_level.assert_called_once_with("alice")


class TestPrepareFailures:
    def test_bot_actor_rejected(self, run_prepare, client, comment_context, outputs):
        client.get_user_type.return_value = "Bot"

        result = run_prepare(comment_context("@claude fix"))

        assert result.state == PrepareState.FAILED
        assert result.exit_code == 1
        assert "non-human actor" in result.error
        client.create_issue_comment.assert_not_called()
        assert outputs.failed_message.startswith("Prepare step failed with error: ")
        assert "non-human actor" in outputs.values["prepare_error"]

    def test_missing_write_permission(self, run_prepare, client, comment_context):
        client.get_permission_level.return_value = "read"

        result = run_prepare(comment_context("@claude fix"))

        assert result.state == PrepareState.FAILED
        assert result.error == "Actor does not have write permissions to the repository"
        client.get_user_type.assert_not_called()
        client.create_issue_comment.assert_not_called()

    def test_permission_lookup_failure_fails_closed(self, run_prepare, client, comment_context):
        client.get_permission_level.side_effect = RemoteOperationError("Failed to check permissions", status=500)
        result = run_prepare(comment_context("@claude fix"))
        assert result.state == PrepareState.FAILED
        client.create_issue_comment.assert_not_called()

    def test_fetch_failure_leaves_no_comment(self, run_prepare, client, comment_context):
        client.get_issue.side_effect = RemoteOperationError("Failed to read issue #42", status=404)

        result = run_prepare(comment_context("@claude fix"))

        assert result.state == PrepareState.FAILED
        assert result.history[-2] == PrepareState.AUTHORIZED
        client.create_issue_comment.assert_not_called()

    def test_branch_failure_after_comment(self, run_prepare, client, comment_context):
        client.get_branch_sha.side_effect = RemoteOperationError("Failed to read branch main", status=404)

        result = run_prepare(comment_context("@claude fix"))

        assert result.state == PrepareState.FAILED
        assert result.comment_id == 1001
        client.update_issue_comment.assert_not_called()

    def test_missing_token(self, run_prepare, client, comment_context):
        def no_token():
            raise AuthenticationError("No GitHub token found.")

        result = run_prepare(comment_context("@claude fix"), token_provider=no_token)

        assert result.state == PrepareState.FAILED
        assert result.history == [PrepareState.START, PrepareState.FAILED]
        client.create_issue_comment.assert_not_called()


class TestSelfReviewRun:
    def test_suppressed_when_no_further_improvements(self, run_self_review, client, comment_context, outputs):
        client.get_issue_comment.return_value = "Reviewed.\n\n✅ No further improvements needed"

        result = run_self_review(comment_context("@claude fix"))

        assert result.state == SelfReviewState.DONE
        assert SelfReviewState.SUPPRESSED in result.history
        assert result.posted_comment_id is None
        client.create_issue_comment.assert_not_called()
        assert outputs.values["self_review_skipped"] == "true"

    def test_posts_with_reference(self, run_self_review, client, comment_context, outputs):
        client.create_issue_comment.return_value = 2002

        result = run_self_review(comment_context("@claude fix"))

        assert result.history == [
            SelfReviewState.START,
            SelfReviewState.TOKEN_ACQUIRED,
            SelfReviewState.PRIOR_COMMENT_CHECKED,
            SelfReviewState.COMMENT_POSTED,
            SelfReviewState.DONE,
        ]
        assert result.posted_comment_id == 2002
        number, body = client.create_issue_comment.call_args[0]
        assert number == 42
        assert body.startswith(SELF_REVIEW_MARKER)
        assert "issues/42#issuecomment-1001" in body
        assert outputs.values["self_review_comment_id"] == "2002"

    def test_read_failure_still_posts(self, run_self_review, client, comment_context):
        client.get_issue_comment.side_effect = RemoteOperationError("Failed to read comment 1001", status=502)

        result = run_self_review(comment_context("@claude fix"))

        assert result.state == SelfReviewState.DONE
        client.create_issue_comment.assert_called_once()

    def test_transport_failure_on_read_still_posts(self, run_self_review, client, comment_context):
        client.get_issue_comment.side_effect = requests.exceptions.ConnectionError("reset by peer")

        result = run_self_review(comment_context("@claude fix"))

        assert result.state == SelfReviewState.DONE
        assert result.exit_code == 0
        assert result.posted_comment_id == 1001
        client.create_issue_comment.assert_called_once()

    def test_without_comment_id(self, run_self_review, client, comment_context):
        result = run_self_review(comment_context("@claude fix"), comment_id=None)

        assert result.state == SelfReviewState.DONE
        assert "Reference:" not in client.create_issue_comment.call_args[0][1]

    def test_post_failure(self, run_self_review, client, comment_context, outputs):
        client.create_issue_comment.side_effect = RemoteOperationError("Failed to comment on #42", status=403)

        result = run_self_review(comment_context("@claude fix"))

        assert result.state == SelfReviewState.FAILED
        assert result.exit_code == 1
        assert outputs.failed_message == "Post self-review comment failed: Failed to comment on #42"
        assert outputs.values["self_review_error"] == "Failed to comment on #42"
