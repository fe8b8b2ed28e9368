# tests/test_waiter.py
from __future__ import annotations

import os
import signal
import time
from typing import Callable

import pytest

from forkguard.waiter.types import EscalationPolicy
from forkguard.waiter.waiter import wait_for_exit


def _spawn(body: Callable[[], None]) -> int:
    pid = os.fork()
    if pid == 0:
        try:
            body()
        finally:
            os._exit(0)
    return pid


def _ignore_term_and_sleep() -> None:
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
    time.sleep(20)


@pytest.fixture
def sent(monkeypatch: pytest.MonkeyPatch) -> list[tuple[signal.Signals, float]]:
    """Records every signal the waiter delivers, then delivers it for real."""
    calls: list[tuple[signal.Signals, float]] = []
    real_kill = os.kill

    def recording_kill(pid: int, sig: signal.Signals) -> None:
        calls.append((sig, time.monotonic()))
        real_kill(pid, sig)

    monkeypatch.setattr(os, "kill", recording_kill)
    return calls


def test_returns_exit_code_of_child() -> None:
    pid = _spawn(lambda: os._exit(3))

    assert wait_for_exit(pid, EscalationPolicy(timeout=5)) == 3


def test_clean_exit_sends_no_signal(sent: list) -> None:
    pid = _spawn(lambda: None)

    assert wait_for_exit(pid, EscalationPolicy(timeout=5)) == 0
    assert sent == []


def test_signalled_child_returns_fallback_exit_code() -> None:
    pid = _spawn(lambda: os.kill(os.getpid(), signal.SIGKILL))

    assert wait_for_exit(pid, EscalationPolicy(timeout=5)) == 99
    assert wait_for_exit(pid, EscalationPolicy(timeout=5)) == 0  # already reaped


def test_custom_fallback_exit_code() -> None:
    pid = _spawn(lambda: os.kill(os.getpid(), signal.SIGKILL))

    assert wait_for_exit(pid, EscalationPolicy(fallback_exit_code=7)) == 7


def test_pid_that_is_not_our_child_counts_as_success() -> None:
    assert wait_for_exit(os.getpid(), EscalationPolicy(timeout=0)) == 0


def test_escalates_term_then_kill(sent: list) -> None:
    pid = _spawn(_ignore_term_and_sleep)

    start = time.monotonic()
    code = wait_for_exit(pid, EscalationPolicy(timeout=0.3))

    assert code == 99
    assert [sig for sig, _ in sent] == [signal.SIGTERM, signal.SIGKILL]
    assert sent[0][1] - start >= 0.3
    # Without a grace period the next signal follows on the next poll.
    assert sent[1][1] - sent[0][1] < 0.5
    with pytest.raises(ChildProcessError):
        os.waitpid(pid, os.WNOHANG)


def test_grace_period_delays_next_signal(sent: list) -> None:
    pid = _spawn(_ignore_term_and_sleep)

    wait_for_exit(pid, EscalationPolicy(timeout=0.2, grace_period=0.6))

    assert [sig for sig, _ in sent] == [signal.SIGTERM, signal.SIGKILL]
    assert sent[1][1] - sent[0][1] >= 0.6


def test_child_obeying_term_is_not_killed(sent: list) -> None:
    pid = _spawn(lambda: time.sleep(20))

    code = wait_for_exit(pid, EscalationPolicy(timeout=0.2, grace_period=5))

    assert code == 99
    assert [sig for sig, _ in sent] == [signal.SIGTERM]


def test_no_timeout_never_signals(sent: list) -> None:
    pid = _spawn(lambda: time.sleep(0.3))

    assert wait_for_exit(pid, EscalationPolicy(timeout=None)) == 0
    assert sent == []


def test_vanished_child_during_kill_counts_as_success(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    pid = _spawn(lambda: time.sleep(0.5))

    def vanished(pid: int, sig: signal.Signals) -> None:
        raise ProcessLookupError(pid)

    monkeypatch.setattr(os, "kill", vanished)
    try:
        assert wait_for_exit(pid, EscalationPolicy(timeout=0)) == 0
    finally:
        os.waitpid(pid, 0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"timeout": -1},
        {"grace_period": -0.1},
        {"poll_interval": -1},
        {"signals": ()},
    ],
)
def test_policy_rejects_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        EscalationPolicy(**kwargs)
