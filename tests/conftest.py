import json
import logging

import pytest

from reviewer.core.config import settings


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point every stage document at a temp workdir and configure a fake endpoint."""
    work = tmp_path / "work"
    work.mkdir()
    repo = tmp_path / "repo"
    repo.mkdir()

    monkeypatch.setattr(settings, "WORKDIR", str(work))
    monkeypatch.setattr(settings, "FINDINGS_FILE", str(work / "findings.json"))
    monkeypatch.setattr(settings, "FIXES_FILE", str(work / "fixes.json"))
    monkeypatch.setattr(settings, "CHANGED_FILES_LIST", str(work / "changed-files.txt"))
    monkeypatch.setattr(settings, "REPO_ROOT", str(repo))
    monkeypatch.setattr(settings, "MAX_FIXES", 5)
    monkeypatch.setattr(settings, "FIX_TIMEOUT", 5.0)
    monkeypatch.setattr(settings, "STRICT_ALLOW_LIST", False)
    monkeypatch.setattr(settings, "FIX_MODEL", "test-model")
    monkeypatch.setattr(settings, "API_URL", "http://llm.test/v1")
    monkeypatch.setattr(settings, "API_KEY", "sk-test")


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def repo(tmp_path):
    return tmp_path / "repo"


@pytest.fixture
def workdir(tmp_path):
    return tmp_path / "work"


@pytest.fixture
def write_findings(workdir):
    def _write(findings, summary="Looks risky", risk_level="HIGH"):
        doc = {"summary": summary, "risk_level": risk_level, "findings": findings}
        (workdir / "findings.json").write_text(json.dumps(doc), encoding="utf-8")

    return _write


@pytest.fixture
def write_allow_list(workdir):
    def _write(paths):
        (workdir / "changed-files.txt").write_text("".join(f"{p}\n" for p in paths), encoding="utf-8")

    return _write


@pytest.fixture
def read_fixes(workdir):
    def _read():
        return json.loads((workdir / "fixes.json").read_text(encoding="utf-8"))

    return _read
