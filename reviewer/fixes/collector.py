"""Turn dispatch outcomes into fix records.

Each outcome is handled on its own and short-circuits to a logged skip at
the first step that fails. The surviving records are written once, in
slot order, as a JSON array.
"""

from __future__ import annotations

import difflib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from reviewer.domain.models import FixResult, ValidatedTask
from reviewer.domain.schemas import FixPayload
from reviewer.llm.base import ChatOutcome
from reviewer.llm.parsing import extract_json_object

logger = logging.getLogger(__name__)

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def _diff_lines(text: str) -> list[str]:
    # Lines end at "\n" only, as in ``diff``; form feeds and U+2028 stay inside a line.
    *lines, tail = text.split("\n")
    lines = [line + "\n" for line in lines]
    if tail:
        # Terminate the last line so difflib output stays line-oriented, and
        # mark it the way ``diff -u`` does.
        lines.append(tail + "\n" + NO_NEWLINE_MARKER)
    return lines


def make_hunks(original: str, fixed: str) -> str:
    """Unified diff of *original* against *fixed* without the ---/+++ banner."""
    diff = difflib.unified_diff(_diff_lines(original), _diff_lines(fixed), fromfile="a", tofile="b")
    body = [line for i, line in enumerate(diff) if i >= 2]
    return "".join(body)


def _align_trailing_newline(original: str, fixed: str) -> str:
    if original.endswith("\n") and fixed and not fixed.endswith("\n"):
        return fixed + "\n"
    return fixed


def collect(slot: int, task: ValidatedTask, outcome: ChatOutcome) -> FixResult | None:
    finding = task.finding
    extra = {"slot": slot, "file": finding.file, "severity": finding.severity}

    if not outcome.ok:
        logger.info("Skipping fix: %s", outcome.error, extra={**extra, "reason": outcome.reason or "transport"})
        return None

    text = outcome.content
    if not text or not text.strip():
        logger.info("Skipping fix: empty response", extra={**extra, "reason": "empty-response"})
        return None

    data = extract_json_object(text)
    if data is None:
        logger.info("Skipping fix: response is not a JSON object", extra={**extra, "reason": "malformed-output"})
        return None

    try:
        payload = FixPayload.model_validate(data)
    except ValidationError as e:
        logger.info(
            "Skipping fix: unexpected response shape (%d errors)",
            e.error_count(),
            extra={**extra, "reason": "malformed-output"},
        )
        return None

    if not payload.fixed_code:
        logger.info("Skipping fix: could not extract fixed code", extra={**extra, "reason": "malformed-output"})
        return None

    original = task.text
    hunks = make_hunks(original, _align_trailing_newline(original, payload.fixed_code))
    if not hunks:
        logger.info("No diff produced (model returned identical code)", extra={**extra, "reason": "no-op"})
        return None

    logger.info("Fix generated", extra=extra)
    return FixResult(
        file=finding.file,
        severity=finding.severity,
        description=finding.description,
        diff=hunks,
        explanation=payload.explanation,
    )


def collect_all(tasks: Iterable[ValidatedTask], outcomes: dict[int, ChatOutcome]) -> list[FixResult]:
    """Collect every task in slot order. A task without an outcome is skipped."""
    results: list[FixResult] = []
    for task in sorted(tasks, key=lambda t: t.slot):
        outcome = outcomes.get(task.slot)
        if outcome is None:
            outcome = ChatOutcome(error="no outcome recorded", reason="transport")
        result = collect(task.slot, task, outcome)
        if result is not None:
            results.append(result)
    return results


def write_fix_set(path: Path, results: Iterable[FixResult]) -> None:
    """Write the fix set as a JSON array, replacing *path* atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps([r.to_dict() for r in results], indent=2)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(document + "\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
