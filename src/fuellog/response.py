"""JSON response envelope for machine-readable CLI output."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, TextIO

SCHEMA_VERSION = "1.0"


@dataclass
class CommandResponse:
    """Envelope printed by every command run with --json.

    Scripts read `success` first; `data` holds the command-specific
    payload and `human_summary` a one-line description.
    """

    success: bool
    command: str
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    human_summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "command": self.command,
            "data": self.data,
            "errors": self.errors,
            "warnings": self.warnings,
            "suggestions": self.suggestions,
            "human_summary": self.human_summary,
            "timestamp": datetime.now().isoformat(),
            "schema_version": SCHEMA_VERSION,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string (non-ASCII food names kept readable)."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def emit(self, file: Optional[TextIO] = None) -> None:
        """Write the JSON document to file or stdout."""
        if file is not None:
            file.write(self.to_json())
        else:
            print(self.to_json())


def success_response(
    command: str,
    data: Optional[dict[str, Any]] = None,
    warnings: Optional[list[str]] = None,
    suggestions: Optional[list[str]] = None,
    human_summary: str = "",
) -> CommandResponse:
    """Create a successful response."""
    return CommandResponse(
        success=True,
        command=command,
        data=data or {},
        warnings=warnings or [],
        suggestions=suggestions or [],
        human_summary=human_summary,
    )


def error_response(
    command: str,
    error: str,
    suggestions: Optional[list[str]] = None,
    data: Optional[dict[str, Any]] = None,
) -> CommandResponse:
    """Create an error response.

    Args:
        command: The command that failed
        error: Error message
        suggestions: Suggestions for fixing the error
        data: Partial results worth reporting anyway

    Returns:
        CommandResponse with success=False
    """
    return CommandResponse(
        success=False,
        command=command,
        data=data or {},
        errors=[error],
        suggestions=suggestions or [],
        human_summary=f"Error: {error}",
    )
