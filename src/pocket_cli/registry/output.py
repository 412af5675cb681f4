"""
Pocket Output Envelope

Every command writes exactly one JSON document to stdout:

    {"success": true, "data": ...}
    {"success": false, "error": {"code": ..., "message": ..., ...}}

Human-facing hints are written to stderr through a rich console, and only
when stderr is attached to a terminal.
"""

import json
import re
from typing import Any, Dict, Optional, TextIO

import click
from rich.console import Console
from rich.markup import escape


# Patterns that indicate a secret value
SECRET_PATTERNS = [
    "token", "password", "secret", "key", "credential",
    "api_key", "apikey", "auth", "bearer",
]

# Regex patterns for common secret formats
SECRET_REGEXES = [
    r'sk-ant-[a-zA-Z0-9\-]{20,}',  # Anthropic API keys
    r'sk-[a-zA-Z0-9]{20,}',  # OpenAI API keys
    r'xox[bp]-[a-zA-Z0-9\-]+',  # Slack tokens
    r'gh[po]_[a-zA-Z0-9]{20,}',  # GitHub tokens
    r'glpat-[a-zA-Z0-9\-_]{20,}',  # GitLab tokens
    r'lin_api_[a-zA-Z0-9]{20,}',  # Linear keys
    r'AKIA[A-Z0-9]{16}',  # AWS Access Key ID
]

NOT_SET = "(not set)"


def mask_secrets(text: str, mask: str = "********") -> str:
    """Mask secrets in a string.

    Args:
        text: The text that may contain secrets
        mask: The string to replace secrets with

    Returns:
        Text with secrets masked
    """
    if not text:
        return text

    result = text

    for pattern in SECRET_PATTERNS:
        # pattern="value" or pattern=value
        regex = rf'({pattern}["\']?\s*[=:]\s*["\']?)([^"\'\s]+)(["\']?)'
        result = re.sub(regex, rf'\1{mask}\3', result, flags=re.IGNORECASE)

    for regex in SECRET_REGEXES:
        result = re.sub(regex, mask, result)

    return result


def redact_value(value: str) -> str:
    """Mask a single stored value for display."""
    if not value:
        return NOT_SET
    if len(value) <= 8:
        return "****"
    return value[:4] + "****" + value[-4:]


def success_envelope(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}


def error_envelope(error: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": False, "error": error}


class OutputWriter:
    """Renders envelopes to stdout and hints to stderr."""

    def __init__(
        self,
        verbose: bool = False,
        stream: Optional[TextIO] = None,
        console: Optional[Console] = None
    ):
        self.verbose = verbose
        self.stream = stream
        self.console = console or Console(stderr=True)

    def _write(self, document: Dict[str, Any]):
        text = json.dumps(document, indent=2 if self.verbose else None, ensure_ascii=False)
        click.echo(text, file=self.stream)

    def success(self, data: Any):
        """Print a success envelope."""
        self._write(success_envelope(data))

    def error(self, error: Dict[str, Any]):
        """Print an error envelope, with a hint on stderr for humans."""
        self._write(error_envelope(error))

        if self.console.is_terminal:
            self.console.print(f"[red]✗[/red] {escape(error.get('message', ''))}", highlight=False)
            remediation = error.get("remediation")
            if remediation:
                self.console.print(f"[dim]{escape(remediation)}[/dim]", highlight=False)
