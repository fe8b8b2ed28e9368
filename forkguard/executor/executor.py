"""Run a unit of work in a forked child and re-raise its failure here.

    run_isolated(lambda: 1 / 0)          # raises ZeroDivisionError
    run_isolated(spin_forever, timeout=1)  # raises ProcessHung

Exception metadata survives the process boundary on a best-effort basis;
the child's traceback is attached as a note on the re-raised exception.
"""

from __future__ import annotations

import contextlib
import functools
import logging
import os
import signal
import threading
import time
from typing import Any, Callable

from forkguard.channel import ErrorChannel
from forkguard.config import IsolationConfig
from forkguard.reconstruct import reconstruct
from forkguard.runner import Task, fork_with_error_output
from forkguard.waiter import EscalationPolicy, wait_for_exit

from .types import ChildResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = IsolationConfig.timeout

# A fork from another thread between os.pipe() and the parent closing its
# write end would leak that write end into an unrelated child.
_SPAWN_LOCK = threading.Lock()


def _reset_spawn_lock() -> None:
    # Children inherit the lock held; nested isolation needs a fresh one.
    global _SPAWN_LOCK
    _SPAWN_LOCK = threading.Lock()


os.register_at_fork(after_in_child=_reset_spawn_lock)

_FROM_CONFIG: Any = object()


def run_isolated(
    task: Task,
    timeout: float | None = _FROM_CONFIG,
    *,
    config: IsolationConfig | None = None,
) -> None:
    """Run ``task`` in a forked child; raise its failure here.

    Without an explicit ``timeout`` the one from ``config`` applies, which
    itself defaults to ``DEFAULT_TIMEOUT`` seconds.
    """
    result = run_child(task, _policy(timeout, config))
    reconstruct(result.pid, result.exit_code, result.raw_payload)


def run_child(task: Task, policy: EscalationPolicy) -> ChildResult:
    """Fork, wait and drain the error channel without interpreting the outcome."""
    start = time.monotonic()
    with _SPAWN_LOCK:
        channel = ErrorChannel()
        try:
            pid = fork_with_error_output(task, channel)
        except BaseException:
            channel.close()
            raise

    try:
        try:
            exit_code = wait_for_exit(pid, policy)
        except BaseException:
            _abandon(pid)
            raise
        payload = channel.drain()
        duration = time.monotonic() - start
    finally:
        # Both pipe ends are closed on every path.
        channel.close()

    logger.debug(
        "child %d finished in %.3fs, exit code %d, %d report bytes",
        pid,
        duration,
        exit_code,
        len(payload),
    )
    return ChildResult(pid, exit_code, payload, duration)


def isolated(
    timeout: float | None = _FROM_CONFIG,
    *,
    config: IsolationConfig | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., None]]:
    def decorator(func: Callable[..., Any]) -> Callable[..., None]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            run_isolated(
                functools.partial(func, *args, **kwargs), timeout, config=config
            )

        return wrapper

    return decorator


def _abandon(pid: int) -> None:
    # The wait was interrupted (e.g. KeyboardInterrupt); do not leave a zombie.
    logger.warning("abandoning child %d", pid)
    with contextlib.suppress(ProcessLookupError):
        os.kill(pid, signal.SIGKILL)
    with contextlib.suppress(ChildProcessError):
        os.waitpid(pid, 0)


def _policy(timeout: float | None, config: IsolationConfig | None) -> EscalationPolicy:
    config = config or IsolationConfig()
    if timeout is _FROM_CONFIG:
        timeout = config.timeout
    return EscalationPolicy(
        timeout=timeout,
        grace_period=config.grace_period,
        poll_interval=config.poll_interval,
        fallback_exit_code=config.fallback_exit_code,
    )
