"""init command — set up claudebot in a repository.

Writes .claudebot.yml and .github/workflows/claude.yml so that mentioning
the trigger phrase in an issue or pull request starts a run after the next
`git push`.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

from claudebot_cli.version import get_version

console = Console()

_WORKFLOW_TEMPLATE = """\
name: Claude

on:
  issue_comment:
    types: [created]
  pull_request_review_comment:
    types: [created]
  pull_request_review:
    types: [submitted]
  issues:
    types: [opened, assigned]

jobs:
  claude:
    runs-on: ubuntu-latest
    permissions:
      contents: write
      issues: write
      pull-requests: write

    steps:
      - uses: actions/checkout@v4
        with:
          fetch-depth: 0

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install claudebot
        run: pip install "{requirement}"

      - name: Prepare task
        id: prepare
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          TRIGGER_PHRASE: "{trigger_phrase}"
        run: claudebot prepare

      - name: Run Claude
        if: steps.prepare.outputs.contains_trigger == 'true'
        uses: anthropics/claude-code-base-action@beta
        with:
          prompt_file: ${{{{ steps.prepare.outputs.prompt_file }}}}
          mcp_config: ${{{{ steps.prepare.outputs.mcp_config }}}}
          anthropic_api_key: ${{{{ secrets.ANTHROPIC_API_KEY }}}}

      - name: Post self-review request
        if: steps.prepare.outputs.contains_trigger == 'true'
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          CLAUDE_COMMENT_ID: ${{{{ steps.prepare.outputs.claude_comment_id }}}}
        run: claudebot post-self-review
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
def init_cmd(repo: str | None):
    """Set up claudebot for this repository.

    Creates .claudebot.yml and generates a GitHub Actions workflow.
    """
    console.print("\n[bold cyan]claudebot init[/bold cyan] — repository setup\n")

    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    trigger_phrase = click.prompt("Trigger phrase", default="@claude")
    branch_prefix = click.prompt("Working branch prefix", default="claude/")

    config: dict = {"trigger_phrase": trigger_phrase, "branch_prefix": branch_prefix}
    _write_config(config)
    console.print("[green]Created .claudebot.yml[/green]")

    setup_ci = click.confirm("\nGenerate .github/workflows/claude.yml for GitHub Actions?", default=True)
    if setup_ci:
        _write_workflow(trigger_phrase)
        console.print("[green]Created .github/workflows/claude.yml[/green]")
        console.print(
            "\n[yellow]Remember to add [bold]ANTHROPIC_API_KEY[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Mention [bold]{trigger_phrase}[/bold] in an issue or pull request of {repo} to start a task.")


def _detect_repo_from_git() -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode != 0:
            return None
        url = result.stdout.strip()
        # https://github.com/owner/repo.git  →  owner/repo
        # git@github.com:owner/repo.git      →  owner/repo
        if "github.com" not in url:
            return None
        slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
        return slug if "/" in slug else None
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None


def _write_config(config: dict) -> None:
    """Write or update .claudebot.yml, preserving any existing keys."""
    path = Path(".claudebot.yml")
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _requirement() -> str:
    version = get_version()
    return f"claudebot=={version}" if version else "claudebot"


def _write_workflow(trigger_phrase: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    workflow_path = workflow_dir / "claude.yml"
    workflow_path.write_text(_WORKFLOW_TEMPLATE.format(trigger_phrase=trigger_phrase, requirement=_requirement()))
