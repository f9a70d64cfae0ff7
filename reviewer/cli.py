"""``reviewer-fixes``: the fix-generation step of the CI review job.

Exit status:
  0  the step ran to completion (including "nothing to fix")
  1  unexpected failure; fixes.json is reset to []
  2  missing or inconsistent configuration; fixes.json is []
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from reviewer.core.config import ConfigError, settings
from reviewer.core.logging import setup_logging
from reviewer.fixes.collector import write_fix_set
from reviewer.services.fix_service import run_fix_generation

logger = logging.getLogger("reviewer.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="reviewer-fixes",
        description="Generate unified-diff fixes for CRITICAL/BUG review findings.",
    )
    ap.add_argument("--findings", type=Path, help="findings document (default: $FINDINGS_FILE)")
    ap.add_argument("--changed-files", type=Path, help="changed-files allow-list (default: $CHANGED_FILES_LIST)")
    ap.add_argument("--output", type=Path, help="fix set output (default: $FIXES_FILE)")
    ap.add_argument("--max-fixes", type=int, help="maximum fixes to attempt, capped at 10 (default: $MAX_FIXES)")
    ap.add_argument("--model", help="model identifier (default: $FIX_MODEL)")
    ap.add_argument("--repo-root", type=Path, help="repository checkout (default: $REPO_ROOT)")
    ap.add_argument("--timeout", type=float, help="per-request timeout in seconds (default: $FIX_TIMEOUT)")
    ap.add_argument("--log-level", help="log level (default: $LOG_LEVEL)")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or settings.LOG_LEVEL)

    output = Path(args.output or settings.FIXES_FILE)
    try:
        result = run_fix_generation(
            findings_path=args.findings,
            allow_list_path=args.changed_files,
            output_path=output,
            max_fixes=args.max_fixes,
            model=args.model,
            repo_root=args.repo_root,
            timeout=args.timeout,
        )
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except Exception:
        logger.exception("Fix generation failed")
        write_fix_set(output, [])
        return 1

    logger.info("Fix generation finished: %s, %d fixes", result["status"], len(result["fixes"]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
