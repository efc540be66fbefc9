"""Tests for environment helpers."""

import pytest

from config import env, redact


@pytest.mark.parametrize("raw", ["1", "true", "Yes", " on "])
def test_env_bool(monkeypatch, raw):
    monkeypatch.setenv("DL_TEST_FLAG", raw)
    assert env("DL_TEST_FLAG", False, cast=bool) is True


def test_env_cast_failure_falls_back(monkeypatch):
    monkeypatch.setenv("DL_TEST_NUM", "soon")
    assert env("DL_TEST_NUM", 3, cast=int) == 3


def test_env_missing(monkeypatch):
    monkeypatch.delenv("DL_TEST_MISSING", raising=False)
    assert env("DL_TEST_MISSING", "x") == "x"


def test_redact():
    assert redact("DIRECT_LINE_SECRET", "abcdefghij") == "abc…"
    assert redact("DIRECT_LINE_SECRET", "abc") == "***"
    assert redact("DIRECT_LINE_URL", "https://x") == "https://x"
    assert redact("DIRECT_LINE_SECRET", None) == ""
