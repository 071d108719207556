import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "trigger_phrase": "@claude",
    "assignee_trigger": None,  # login that triggers a run when an issue is assigned to it
    "branch_prefix": "claude/",
    "allowed_tools": [],
    "disallowed_tools": [],
    "custom_instructions": None,
    "direct_prompt": None,  # set to skip trigger detection and run with this prompt
    "base_branch": None,  # None = repository default branch
    "self_review_bot_login": "github-actions[bot]",
    "github_server_url": "https://github.com",
    "github_api_url": "https://api.github.com",
    "local_checkout": True,
    "mcp_config": None,  # extra MCP servers as a JSON string, merged into the generated config
}

# Action inputs arrive as environment variables. Values are strings; list
# inputs are comma- or newline-separated.
_ENV_INPUTS = {
    "TRIGGER_PHRASE": "trigger_phrase",
    "ASSIGNEE_TRIGGER": "assignee_trigger",
    "BRANCH_PREFIX": "branch_prefix",
    "ALLOWED_TOOLS": "allowed_tools",
    "DISALLOWED_TOOLS": "disallowed_tools",
    "CUSTOM_INSTRUCTIONS": "custom_instructions",
    "DIRECT_PROMPT": "direct_prompt",
    "BASE_BRANCH": "base_branch",
    "GITHUB_SERVER_URL": "github_server_url",
    "GITHUB_API_URL": "github_api_url",
    "MCP_CONFIG": "mcp_config",
}

_LIST_KEYS = {"allowed_tools", "disallowed_tools"}


def parse_list_input(value) -> list[str]:
    """Split a comma- or newline-separated input into a clean list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    parts = str(value).replace("\n", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


def load_config(
    config_path: str = ".claudebot.yml",
    cli_overrides: Optional[dict] = None,
    environ: Optional[dict] = None,
) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .claudebot.yml in the current directory
      3. Action inputs from the environment (empty values are ignored)
      4. CLI argument overrides
    """
    env = os.environ if environ is None else environ
    config = {
        **DEFAULT_CONFIG,
        "allowed_tools": list(DEFAULT_CONFIG["allowed_tools"]),
        "disallowed_tools": list(DEFAULT_CONFIG["disallowed_tools"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    for env_name, key in _ENV_INPUTS.items():
        value = env.get(env_name)
        if value:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    for key in _LIST_KEYS:
        config[key] = parse_list_input(config.get(key))

    return config
