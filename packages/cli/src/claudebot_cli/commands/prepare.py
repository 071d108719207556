"""prepare command — first step of the Actions job."""

from __future__ import annotations

import click

from claudebot_core.config import load_config
from claudebot_core.workflow import PrepareWorkflow


@click.command("prepare")
@click.option("--trigger-phrase", default=None, help="Phrase that activates the bot. Overrides config file.")
@click.option("--base-branch", default=None, help="Branch to cut working branches from. Defaults to the repo default.")
@click.option(
    "--no-checkout",
    is_flag=True,
    help="Do not fetch and check out the working branch in the local clone.",
)
@click.pass_context
def prepare_cmd(ctx, trigger_phrase: str | None, base_branch: str | None, no_checkout: bool):
    """Check the trigger and prepare a task for the agent.

    Reads the event from GITHUB_EVENT_NAME / GITHUB_EVENT_PATH. Exits 0
    without doing anything when the event does not mention the trigger
    phrase. Writes its results to GITHUB_OUTPUT.

    \b
    Required environment variables:
      GITHUB_TOKEN         Token with contents/issues/pull-requests write access
                           (or OVERRIDE_GITHUB_TOKEN, or a gh CLI session)
    """
    config_path = ctx.obj.get("config_path", ".claudebot.yml") if ctx.obj else ".claudebot.yml"
    overrides = {"trigger_phrase": trigger_phrase, "base_branch": base_branch}
    if no_checkout:
        overrides["local_checkout"] = False
    config = load_config(config_path, cli_overrides=overrides)

    result = PrepareWorkflow(config).run()
    if result.exit_code:
        ctx.exit(result.exit_code)
