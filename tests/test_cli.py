# tests/test_cli.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from forkguard.cli import run_cli

TARGETS = """\
import time


def ok():
    print("working")


def boom():
    raise ValueError("Explosion!")


def hang():
    time.sleep(20)


not_callable = 3
"""


@pytest.fixture
def targets(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Writes an importable module of task callables and returns its name."""
    name = f"fg_targets_{tmp_path.name}"
    (tmp_path / f"{name}.py").write_text(TARGETS, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


def _write_json_config(path: Path, isolation: dict) -> None:
    path.write_text(json.dumps({"isolation": isolation}), encoding="utf-8")


def test_run_ok_returns_0(targets: str, capfd: pytest.CaptureFixture[str]) -> None:
    code = run_cli(["run", f"{targets}:ok"])
    out = capfd.readouterr().out

    assert code == 0
    assert "working" in out
    assert f"OK {targets}:ok" in out


def test_run_failure_returns_1(
    targets: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = run_cli(["run", f"{targets}:boom"])
    out = capsys.readouterr().out

    assert code == 1
    assert f"FAIL {targets}:boom" in out
    assert "ValueError: Explosion!" in out


def test_run_hung_uses_config_timeout(
    tmp_path: Path, targets: str, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "forkguard.json"
    _write_json_config(cfg, {"timeout": 0.3})

    code = run_cli(["--config", str(cfg), "run", f"{targets}:hang"])
    out = capsys.readouterr().out

    assert code == 1
    assert f"HUNG {targets}:hang" in out
    assert "pid " in out


def test_run_timeout_flag_overrides_config(
    tmp_path: Path, targets: str, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "forkguard.json"
    _write_json_config(cfg, {"timeout": 60})

    code = run_cli(["--config", str(cfg), "run", f"{targets}:hang", "--timeout", "0.3"])

    assert code == 1
    assert "HUNG" in capsys.readouterr().out


def test_config_prints_effective_settings(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "forkguard.json"
    _write_json_config(cfg, {"timeout": None, "grace_period": 0.5})

    code = run_cli(["--config", str(cfg), "config"])
    out = capsys.readouterr().out.splitlines()

    assert code == 0
    assert out == [
        "timeout: none",
        "poll_interval: 0.01",
        "grace_period: 0.5",
        "fallback_exit_code: 99",
    ]


def test_config_defaults_without_file(capsys: pytest.CaptureFixture[str]) -> None:
    code = run_cli(["config"])

    assert code == 0
    assert "timeout: 10" in capsys.readouterr().out


def test_invalid_config_path_returns_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    missing = tmp_path / "missing.json"

    code = run_cli(["--config", str(missing), "config"])
    captured = capsys.readouterr()

    assert code == 2
    assert captured.err != ""


@pytest.mark.parametrize(
    "target",
    [
        "no_colon_here",
        "definitely_missing_module:main",
        "{targets}:nope",
        "{targets}:not_callable",
    ],
)
def test_bad_target_returns_2(
    targets: str, target: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = run_cli(["run", target.format(targets=targets)])
    captured = capsys.readouterr()

    assert code == 2
    assert captured.err != ""


def test_negative_timeout_returns_2(
    targets: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = run_cli(["run", f"{targets}:ok", "--timeout", "-1"])
    captured = capsys.readouterr()

    assert code == 2
    assert "timeout must be >= 0" in captured.err
    assert captured.out == ""


def test_negative_config_timeout_returns_2(
    tmp_path: Path, targets: str, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "forkguard.json"
    _write_json_config(cfg, {"timeout": 1})

    code = run_cli(["--config", str(cfg), "run", f"{targets}:ok", "--timeout", "-0.5"])
    captured = capsys.readouterr()

    assert code == 2
    assert "FAIL" not in captured.out
