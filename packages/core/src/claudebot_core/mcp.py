"""MCP tool configuration handed to the agent step."""

from __future__ import annotations

import json
import logging

from claudebot_core.context import EventContext

logger = logging.getLogger(__name__)

GITHUB_MCP_IMAGE = "ghcr.io/github/github-mcp-server:latest"


def _base_config(
    github_token: str,
    context: EventContext,
    branch: str,
    claude_comment_id: int,
    server_url: str,
) -> dict:
    env = {
        "GITHUB_PERSONAL_ACCESS_TOKEN": github_token,
        "GITHUB_HOST": server_url,
        "REPO_OWNER": context.repository.owner,
        "REPO_NAME": context.repository.repo,
        "BRANCH_NAME": branch,
        "CLAUDE_COMMENT_ID": str(claude_comment_id),
        "GITHUB_EVENT_NAME": context.event_name,
        "IS_PR": "true" if context.is_pr else "false",
        "ALLOWED_TOOLS": ",".join(context.inputs.allowed_tools),
    }
    args = ["run", "-i", "--rm"]
    for name in env:
        args += ["-e", name]
    args.append(GITHUB_MCP_IMAGE)
    return {"mcpServers": {"github": {"command": "docker", "args": args, "env": env}}}


def prepare_mcp_config(
    github_token: str,
    context: EventContext,
    branch: str,
    claude_comment_id: int,
    additional_mcp_config: str | None = None,
    server_url: str = "https://github.com",
) -> str:
    """Return the MCP configuration as a JSON string.

    additional_mcp_config is user-supplied JSON. Its top-level keys override
    ours and its mcpServers are merged over the built-in servers. Invalid
    JSON is logged and ignored.
    """
    config = _base_config(github_token, context, branch, claude_comment_id, server_url)

    if additional_mcp_config and additional_mcp_config.strip():
        try:
            extra = json.loads(additional_mcp_config)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring invalid additional MCP config: %s", e)
            extra = None
        if isinstance(extra, dict):
            servers = {**config["mcpServers"], **(extra.get("mcpServers") or {})}
            config = {**config, **extra, "mcpServers": servers}
        elif extra is not None:
            logger.warning("Ignoring additional MCP config: expected a JSON object, got %s", type(extra).__name__)

    return json.dumps(config, indent=2)
