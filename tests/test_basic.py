"""Package surface checks: metadata banner and top-level exports."""

from __future__ import annotations

import log_fanout
from log_fanout import __init__conf__, summary_info


def test_summary_info_contains_metadata() -> None:
    summary = summary_info()
    assert "Info for log_fanout" in summary
    assert __init__conf__.version in summary
    assert summary.endswith("\n")


def test_summary_info_is_idempotent() -> None:
    assert summary_info() == summary_info()


def test_print_info_defaults_to_stdout(capsys) -> None:
    __init__conf__.print_info()
    assert capsys.readouterr().out == summary_info()


def test_public_exports_resolve() -> None:
    for name in log_fanout.__all__:
        assert getattr(log_fanout, name) is not None
