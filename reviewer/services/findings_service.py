"""Load the review stage's findings document into a ``FindingStore``."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from reviewer.domain.models import RISK_LEVELS, Finding, FindingStore, RiskLevel
from reviewer.domain.schemas import FindingIn, FindingsDocumentIn

logger = logging.getLogger(__name__)

DEFAULT_RISK_LEVEL: RiskLevel = "MEDIUM"


class FindingsDocumentError(RuntimeError):
    """The findings document exists but cannot be read or understood."""


def _risk_level(value: str | None) -> RiskLevel:
    level = (value or "").strip().upper()
    if level in RISK_LEVELS:
        return level
    if value is not None:
        logger.warning("Unknown risk_level %r, treating as %s", value, DEFAULT_RISK_LEVEL)
    return DEFAULT_RISK_LEVEL


def parse_findings(raw: object) -> FindingStore:
    try:
        doc = FindingsDocumentIn.model_validate(raw)
    except ValidationError as e:
        raise FindingsDocumentError(f"invalid findings document: {e.error_count()} errors") from e

    findings: list[Finding] = []
    slots: list[int] = []
    for index, item in enumerate(doc.findings):
        try:
            parsed = FindingIn.model_validate(item)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed finding #%d: %s",
                index,
                "; ".join(err["msg"] for err in e.errors()),
                extra={"slot": index, "reason": "malformed-finding"},
            )
            continue
        findings.append(Finding(**parsed.model_dump()))
        slots.append(index)

    return FindingStore(
        summary=doc.summary,
        risk_level=_risk_level(doc.risk_level),
        findings=tuple(findings),
        slots=tuple(slots),
    )


def load_findings(path: Path) -> FindingStore | None:
    """Return the findings in *path*, or None if the file does not exist."""
    if not path.exists():
        return None
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FindingsDocumentError(f"cannot read {path}: {e}") from e
    return parse_findings(raw)
