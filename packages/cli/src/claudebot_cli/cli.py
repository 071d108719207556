"""CLI entry point for claudebot.

Commands:
  prepare           — check the trigger, authorize the actor, post the tracking
                      comment, set up the branch, write prompt and MCP config
  post-self-review  — ask the bot to review its own work, unless the last
                      review said nothing else is needed
  init              — write .claudebot.yml and a GitHub Actions workflow
"""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from claudebot_cli.commands.init import init_cmd
from claudebot_cli.commands.prepare import prepare_cmd
from claudebot_cli.commands.self_review import self_review_cmd
from claudebot_cli.version import get_version


@click.group()
@click.version_option(version=get_version() or "unknown", prog_name="claudebot")
@click.option(
    "--config",
    "config_path",
    default=".claudebot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CLAUDEBOT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """GitHub Actions bot that turns @claude mentions into tracked tasks."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, markup=False)],
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(prepare_cmd)
main.add_command(self_review_cmd)
main.add_command(init_cmd)
