"""post-self-review command — last step of the Actions job."""

from __future__ import annotations

import click

from claudebot_core.config import load_config
from claudebot_core.workflow import SelfReviewWorkflow


@click.command("post-self-review")
@click.option(
    "--comment-id",
    type=int,
    default=None,
    envvar="CLAUDE_COMMENT_ID",
    help="Id of the tracking comment created by `claudebot prepare`.",
)
@click.pass_context
def self_review_cmd(ctx, comment_id: int | None):
    """Post a self-review request for the task that just finished.

    Skipped (exit 0) when the tracking comment says no further improvements
    are needed.
    """
    config_path = ctx.obj.get("config_path", ".claudebot.yml") if ctx.obj else ".claudebot.yml"
    config = load_config(config_path)

    result = SelfReviewWorkflow(config).run(comment_id)
    if result.exit_code:
        ctx.exit(result.exit_code)
