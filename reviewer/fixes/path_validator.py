"""Path policy for model-controlled file names.

A finding's ``file`` comes from model output, so it is treated as
untrusted. With an allow-list (the PR's changed files) a path must match
an entry exactly, line for line. Without one, the only check is that the
file exists in the repository, which is weaker and is flagged once per run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

NOT_IN_ALLOW_LIST = "not-in-allow-list"
NOT_FOUND = "not-found"
OUTSIDE_REPO = "outside-repo"


def load_allow_list(path: Path) -> frozenset[str] | None:
    """Read the changed-files list, one path per line. None if the file is absent."""
    if not path.is_file():
        return None
    entries = path.read_text(encoding="utf-8", errors="replace").splitlines()
    return frozenset(line.rstrip("\r\n") for line in entries if line.strip())


@dataclass(frozen=True)
class PathValidator:
    repo_root: Path
    allow_list: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.allow_list is None:
            logger.warning(
                "No changed-files allow-list available; falling back to file-exists checks only",
                extra={"reason": "degraded-validation"},
            )

    def rejection_reason(self, file: str) -> str | None:
        """Return why *file* is rejected, or None if it may be fixed."""
        if self.allow_list is not None and file not in self.allow_list:
            return NOT_IN_ALLOW_LIST

        candidate = Path(file)
        if candidate.is_absolute():
            return OUTSIDE_REPO
        root = self.repo_root.resolve()
        try:
            resolved = (root / candidate).resolve()
        except (OSError, ValueError):
            # e.g. embedded NUL bytes or symlink loops
            return OUTSIDE_REPO
        if resolved != root and root not in resolved.parents:
            return OUTSIDE_REPO

        if not resolved.is_file():
            return NOT_FOUND
        return None

    def validate(self, file: str) -> bool:
        reason = self.rejection_reason(file)
        if reason is None:
            return True
        logger.info("Skipping %s: %s", file, reason, extra={"file": file, "reason": reason})
        return False

    def resolve(self, file: str) -> Path:
        return self.repo_root / file
