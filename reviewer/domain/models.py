from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

Severity = Literal["CRITICAL", "BUG", "WARNING", "INFO", "STYLE"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

RISK_LEVELS = frozenset({"LOW", "MEDIUM", "HIGH", "CRITICAL"})

# Severities that are worth an automatic fix attempt
FIXABLE_SEVERITIES = frozenset({"CRITICAL", "BUG"})


@dataclass(frozen=True)
class Finding:
    severity: Severity
    file: str
    line: int | None
    description: str
    suggestion: str

    @property
    def fixable(self) -> bool:
        return self.severity in FIXABLE_SEVERITIES

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line if self.line is not None else 'unknown'}"


@dataclass(frozen=True)
class FindingStore:
    """Ordered, read-only findings for one run.

    ``slots`` holds each finding's index in the findings document, which
    differs from its position here once malformed entries have been
    dropped. Without it, positions are used.
    """

    summary: str
    risk_level: RiskLevel
    findings: tuple[Finding, ...] = ()
    slots: tuple[int, ...] | None = None

    def __len__(self) -> int:
        return len(self.findings)

    def fixable(self) -> list[tuple[int, Finding]]:
        """(slot, finding) pairs for CRITICAL/BUG findings, in original order."""
        slots = self.slots if self.slots is not None else range(len(self.findings))
        return [(slot, f) for slot, f in zip(slots, self.findings) if f.fixable]


@dataclass(frozen=True)
class ValidatedTask:
    slot: int
    finding: Finding
    content: bytes

    @property
    def text(self) -> str:
        # Tasks are only built for UTF-8 files, see fix_service.select_tasks
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class FixResult:
    file: str
    severity: Severity
    description: str
    diff: str
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
