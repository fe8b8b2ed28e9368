from __future__ import annotations

import contextlib
import logging
import os
import time

from .types import EscalationPolicy, WaitState

logger = logging.getLogger(__name__)

# The child is gone or is not ours to wait for; assumed to have exited cleanly.
_VANISHED = (ChildProcessError, ProcessLookupError, PermissionError)


def wait_for_exit(pid: int, policy: EscalationPolicy) -> int:
    """Poll ``pid`` until it terminates, escalating signals after the timeout.

    Returns the child's exit code, or ``policy.fallback_exit_code`` when the
    child was terminated by a signal and reported no exit status. The child
    is reaped exactly once on every path.
    """
    start = time.monotonic()
    pending = list(policy.signals)
    last_signal_at: float | None = None
    state = WaitState.POLLING
    exit_code = 0

    while state is not WaitState.DONE:
        try:
            wpid, status = os.waitpid(pid, os.WNOHANG)
        except _VANISHED as exc:
            logger.debug("child %d vanished while polling: %s", pid, exc)
            return 0

        if wpid == pid:
            exit_code = _exit_code(status, policy.fallback_exit_code)
            state = WaitState.DONE
            continue

        now = time.monotonic()
        if policy.timeout is not None and now - start > policy.timeout:
            state = WaitState.ESCALATING

        if state is WaitState.ESCALATING and _may_signal(now, last_signal_at, policy):
            sig = pending.pop(0)
            logger.warning(
                "child %d exceeded %.3fs timeout, sending %s",
                pid,
                policy.timeout,
                sig.name,
            )
            try:
                os.kill(pid, sig)
            except _VANISHED as exc:
                logger.debug("child %d vanished before %s: %s", pid, sig.name, exc)
                _reap_quietly(pid)
                return 0
            last_signal_at = now

            if not pending:
                exit_code = _blocking_wait(pid, policy.fallback_exit_code)
                state = WaitState.DONE
                continue

        time.sleep(policy.poll_interval)

    logger.debug("child %d reaped with exit code %d", pid, exit_code)
    return exit_code


def _may_signal(
    now: float, last_signal_at: float | None, policy: EscalationPolicy
) -> bool:
    if last_signal_at is None:
        return True
    return now - last_signal_at >= policy.grace_period


def _blocking_wait(pid: int, fallback_exit_code: int) -> int:
    try:
        _, status = os.waitpid(pid, 0)
    except _VANISHED as exc:
        logger.debug("child %d vanished before final wait: %s", pid, exc)
        return 0
    return _exit_code(status, fallback_exit_code)


def _reap_quietly(pid: int) -> None:
    with contextlib.suppress(ChildProcessError):
        os.waitpid(pid, os.WNOHANG)


def _exit_code(status: int, fallback_exit_code: int) -> int:
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    return fallback_exit_code
