"""Shared data classes for chat-completion calls.

A call never raises to its caller: transport problems, timeouts and
non-2xx statuses come back as a ``ChatOutcome`` with ``error`` set, so
one failing call cannot take its siblings down with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ── Shared data classes ──────────────────────────────────────────


@dataclass
class ChatOutcome:
    """Terminal state of a single chat-completion call."""

    content: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    status_code: int | None = None
    error: str | None = None
    # Short machine-readable failure category: "timeout", "transport", "http-500", ...
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TokenTracker:
    """Accumulates token usage across the calls of one run."""

    total_input: int = 0
    total_output: int = 0
    calls: int = 0
    errors: int = 0
    history: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return self.total_input + self.total_output

    def record(self, outcome: ChatOutcome, slot: int | None = None) -> None:
        self.calls += 1
        self.total_input += outcome.input_tokens
        self.total_output += outcome.output_tokens
        if outcome.error:
            self.errors += 1
        self.history.append(
            {
                "call": self.calls,
                "slot": slot,
                "input_tokens": outcome.input_tokens,
                "output_tokens": outcome.output_tokens,
                "model": outcome.model,
                "error": outcome.error,
            }
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_input_tokens": self.total_input,
            "total_output_tokens": self.total_output,
            "total_tokens": self.total_tokens,
            "calls": self.calls,
            "errors": self.errors,
        }
