"""Fix generation service: LLM patches for the most severe review findings.

Flow:
  1. Load findings.json once (missing or unreadable -> empty fix set)
  2. Validate: walk CRITICAL/BUG findings in order, check each path
     against the changed-files allow-list, capture the (UTF-8) content and
     stop at MAX_FIXES validated tasks
  3. Dispatch: one chat-completion request per task, all in flight at
     once, each with its own timeout; wait for every one to finish
  4. Collect: parse each response, diff the fixed file against the
     captured original, drop failures and no-ops
  5. Persist the fix set (slot order) as fixes.json

fixes.json holds ``[]`` from the start of the run, so later stages always
find valid JSON even if this one dies half way.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from reviewer.core.config import ConfigError, clamp_max_fixes, settings
from reviewer.domain.models import FindingStore, FixResult, ValidatedTask
from reviewer.fixes.collector import collect_all, write_fix_set
from reviewer.fixes.dispatcher import DispatchReport, FixDispatcher
from reviewer.fixes.path_validator import PathValidator, load_allow_list
from reviewer.fixes.prompt_builder import FixRequest, build_fix_request
from reviewer.llm.base import TokenTracker
from reviewer.llm.openai_client import build_chat_client
from reviewer.services.findings_service import FindingsDocumentError, load_findings

logger = logging.getLogger(__name__)


def select_tasks(store: FindingStore, validator: PathValidator, max_fixes: int) -> list[ValidatedTask]:
    """First *max_fixes* CRITICAL/BUG findings, in order, that pass validation."""
    tasks: list[ValidatedTask] = []
    if max_fixes <= 0:
        return tasks

    for slot, finding in store.fixable():
        if len(tasks) >= max_fixes:
            break

        logger.info(
            "Fix %d/%d: [%s] %s",
            len(tasks) + 1,
            max_fixes,
            finding.severity,
            finding.location,
            extra={"slot": slot, "file": finding.file, "severity": finding.severity},
        )
        if not validator.validate(finding.file):
            continue

        try:
            content = validator.resolve(finding.file).read_bytes()
        except OSError as e:
            logger.warning(
                "Skipping %s: cannot read file: %s",
                finding.file,
                e,
                extra={"slot": slot, "file": finding.file, "reason": "not-found"},
            )
            continue

        try:
            content.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(
                "Skipping %s: file is not valid UTF-8",
                finding.file,
                extra={"slot": slot, "file": finding.file, "reason": "not-utf8"},
            )
            continue

        tasks.append(ValidatedTask(slot=slot, finding=finding, content=content))

    return tasks


def build_requests(tasks: list[ValidatedTask], model: str) -> list[tuple[int, FixRequest]]:
    return [(task.slot, build_fix_request(task, model)) for task in tasks]


async def _dispatch(requests: list[tuple[int, FixRequest]], timeout: float, tracker: TokenTracker) -> DispatchReport:
    client = build_chat_client()
    try:
        return await FixDispatcher(client, timeout=timeout, tracker=tracker).dispatch_async(requests)
    finally:
        await client.aclose()


def _result(status: str, fixes: list[FixResult], **extra: Any) -> dict[str, Any]:
    return {"status": status, "fixes": [f.to_dict() for f in fixes], **extra}


def run_fix_generation(
    findings_path: Path | None = None,
    allow_list_path: Path | None = None,
    output_path: Path | None = None,
    max_fixes: int | None = None,
    model: str | None = None,
    repo_root: Path | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Generate fixes for the run's findings and write the fix set.

    Returns a summary dict with ``status``, ``fixes`` and counters. Raises
    ``ConfigError`` when tasks exist but the endpoint is not configured, or
    when a strict allow-list is required and missing; ``fixes.json`` is
    still ``[]`` in that case.
    """
    findings_path = Path(findings_path or settings.FINDINGS_FILE)
    allow_list_path = Path(allow_list_path or settings.CHANGED_FILES_LIST)
    output_path = Path(output_path or settings.FIXES_FILE)
    repo_root = Path(repo_root or settings.REPO_ROOT)
    cap = clamp_max_fixes(settings.MAX_FIXES if max_fixes is None else max_fixes)
    model = model or settings.FIX_MODEL
    timeout = timeout or settings.FIX_TIMEOUT

    write_fix_set(output_path, [])

    # 1. Load findings
    try:
        store = load_findings(findings_path)
    except FindingsDocumentError as e:
        logger.error("Unreadable findings document, skipping fixes: %s", e, extra={"reason": "no-findings"})
        return _result("no-findings", [])
    if store is None:
        logger.info("No findings file, skipping fixes", extra={"reason": "no-findings"})
        return _result("no-findings", [])

    eligible = store.fixable()
    if not eligible:
        logger.info("No CRITICAL/BUG findings, skipping fixes", extra={"reason": "no-eligible-findings"})
        return _result("no-eligible-findings", [])

    logger.info(
        "Found %d CRITICAL/BUG findings, generating fixes (max %d, model: %s)",
        len(eligible),
        cap,
        model,
    )

    # 2. Validate
    allow_list = load_allow_list(allow_list_path)
    if allow_list is None and settings.STRICT_ALLOW_LIST:
        raise ConfigError(f"STRICT_ALLOW_LIST is set but {allow_list_path} does not exist")
    validator = PathValidator(repo_root=repo_root, allow_list=allow_list)
    tasks = select_tasks(store, validator, cap)
    if not tasks:
        logger.info("No findings passed validation, skipping fixes", extra={"reason": "no-eligible-findings"})
        return _result("no-valid-tasks", [])

    missing = settings.missing_for_dispatch(model)
    if missing:
        raise ConfigError(f"missing required configuration: {', '.join(missing)}")

    # 3. Dispatch, then wait for every request
    tracker = TokenTracker()
    report = asyncio.run(_dispatch(build_requests(tasks, model), timeout, tracker))

    # 4. Collect in slot order
    fixes = collect_all(tasks, report.outcomes)

    # 5. Persist
    write_fix_set(output_path, fixes)

    logger.info(
        "Generated %d fixes from %d tasks (%d failed requests, %d tokens used)",
        len(fixes),
        len(tasks),
        report.failures,
        tracker.total_tokens,
    )
    return _result(
        "ok",
        fixes,
        tasks=len(tasks),
        failures=report.failures,
        token_usage=tracker.to_dict(),
    )
