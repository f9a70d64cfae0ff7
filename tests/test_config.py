"""Tests for run configuration."""

from reviewer.core.config import MAX_FIXES_CAP, Settings, _env_flag, clamp_max_fixes


def test_max_fixes_is_hard_capped():
    assert Settings(MAX_FIXES=50).MAX_FIXES == MAX_FIXES_CAP == 10


def test_max_fixes_negative_means_none():
    assert Settings(MAX_FIXES=-3).MAX_FIXES == 0


def test_max_fixes_within_range_is_kept():
    assert Settings(MAX_FIXES=7).MAX_FIXES == 7
    assert clamp_max_fixes(10) == 10


def test_missing_for_dispatch_lists_required_values():
    s = Settings(API_URL=None, API_KEY=None, FIX_MODEL=None)
    assert s.missing_for_dispatch() == ["API_URL", "API_KEY", "FIX_MODEL"]


def test_missing_for_dispatch_model_override():
    s = Settings(API_URL="http://x/v1", API_KEY="k", FIX_MODEL=None)
    assert s.missing_for_dispatch() == ["FIX_MODEL"]
    assert s.missing_for_dispatch("gpt-4o-mini") == []


def test_env_flag(monkeypatch):
    monkeypatch.setenv("STRICT_ALLOW_LIST", "True")
    assert _env_flag("STRICT_ALLOW_LIST") is True
    monkeypatch.setenv("STRICT_ALLOW_LIST", "0")
    assert _env_flag("STRICT_ALLOW_LIST") is False
    monkeypatch.delenv("STRICT_ALLOW_LIST")
    assert _env_flag("STRICT_ALLOW_LIST") is False


def test_empty_numeric_settings_use_defaults():
    s = Settings(MAX_FIXES="", FIX_TIMEOUT="  ")
    assert s.MAX_FIXES == 5
    assert s.FIX_TIMEOUT == 120.0


def test_numeric_settings_parse_env_strings():
    s = Settings(MAX_FIXES=" 3 ", FIX_TIMEOUT="30")
    assert s.MAX_FIXES == 3
    assert s.FIX_TIMEOUT == 30.0


def test_invalid_numeric_settings_fall_back_with_warning(caplog):
    with caplog.at_level("WARNING", logger="reviewer.core.config"):
        s = Settings(MAX_FIXES="lots", FIX_TIMEOUT="-1")
    assert s.MAX_FIXES == 5
    assert s.FIX_TIMEOUT == 120.0
    assert "MAX_FIXES" in caplog.text
    assert "FIX_TIMEOUT" in caplog.text
