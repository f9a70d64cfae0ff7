"""Build the chat-completion request that asks for one fix.

One request per validated finding: the full captured file goes in
verbatim and the model must answer with a JSON object holding the
complete replacement file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reviewer.domain.models import ValidatedTask

SYSTEM_PROMPT = "You are a precise code fixer. Output valid JSON only, no markdown."

FIX_TEMPERATURE = 0.1

RESPONSE_FORMAT = {"type": "json_object"}


@dataclass(frozen=True)
class FixRequest:
    model: str
    system: str
    user: str
    temperature: float = FIX_TEMPERATURE
    response_format: dict[str, Any] = field(default_factory=lambda: dict(RESPONSE_FORMAT))

    def to_payload(self) -> dict[str, Any]:
        """Render the chat-completions request body."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system},
                {"role": "user", "content": self.user},
            ],
            "response_format": dict(self.response_format),
            "temperature": self.temperature,
        }


def build_fix_prompt(task: ValidatedTask) -> str:
    finding = task.finding
    line = finding.line if finding.line is not None else "unknown"
    parts = [
        "You are a code fixer. Fix the following issue in the file.",
        "",
        f"FILE: {finding.file} (line {line})",
        f"PROBLEM: {finding.description}",
        f"SUGGESTED FIX: {finding.suggestion}",
        "",
        "Here is the full file content:",
        "```",
        task.text,
        "```",
        "",
        "Respond with ONLY a JSON object containing:",
        '- "fixed_code": the complete fixed file content (full file, not just the changed part)',
        '- "explanation": brief explanation of what you changed (1-2 sentences)',
        '- "diff_description": what lines changed and how',
        "",
        "Do NOT include markdown fences. Respond with raw JSON only.",
    ]
    return "\n".join(parts)


def build_fix_request(task: ValidatedTask, model: str) -> FixRequest:
    return FixRequest(model=model, system=SYSTEM_PROMPT, user=build_fix_prompt(task))
