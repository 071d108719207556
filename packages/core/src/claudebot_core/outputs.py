"""Run outputs for the invoking GitHub Actions workflow.

Outputs are appended to the file named by GITHUB_OUTPUT using the heredoc
form (`name<<DELIM`), which is safe for multi-line values such as the MCP
config JSON. Outside Actions (GITHUB_OUTPUT unset) they are only logged and
kept in memory.
"""

from __future__ import annotations

import logging
import os
import uuid

from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)


class ActionOutputs:
    def __init__(self, output_path: str | None = None):
        self.output_path = output_path if output_path is not None else os.environ.get("GITHUB_OUTPUT")
        self.values: dict[str, str] = {}
        self.failed_message: str | None = None

    def set_output(self, name: str, value) -> None:
        text = "" if value is None else str(value)
        self.values[name] = text
        if not self.output_path:
            logger.info("output %s=%s", name, text)
            return
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        with open(self.output_path, "a", encoding="utf-8") as f:
            f.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")

    def set_failed(self, message: str) -> None:
        """Emit an error annotation. The caller owns the exit code."""
        self.failed_message = message
        # Workflow command syntax; rendered as an annotation on the run.
        console.print(f"::error::{message}", markup=False, highlight=False, soft_wrap=True)
