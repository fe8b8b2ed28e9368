from __future__ import annotations

import contextlib
import logging
import os
import pickle
import sys
import traceback
from typing import Callable

from forkguard.channel import ErrorChannel, FailureReport

logger = logging.getLogger(__name__)

Task = Callable[[], object]


def fork_with_error_output(task: Task, channel: ErrorChannel) -> int:
    """Run ``task`` in a forked child and return the child's pid.

    The child never returns from this function. It reports a failure on
    ``channel`` and leaves through ``os._exit`` so no inherited ``atexit``
    hooks or finalizers run twice.
    """
    # Anything still buffered would otherwise be printed by both processes.
    _flush_std_streams()

    pid = os.fork()
    if pid == 0:
        _run_child(task, channel)

    logger.debug("forked child %d", pid)
    channel.close_writer()
    return pid


def describe_failure(exc: BaseException) -> FailureReport:
    kind = _qualified_name(type(exc))
    try:
        message = str(exc)
    except Exception:
        message = f"<unprintable {kind}>"

    backtrace = traceback.format_tb(exc.__traceback__)

    try:
        blob: bytes | None = pickle.dumps(exc)
    except Exception:
        blob = None

    return FailureReport(kind, message, backtrace, blob)


def _run_child(task: Task, channel: ErrorChannel) -> None:
    success = False
    try:
        channel.close_reader()
        task()
        success = True
    except SystemExit as exc:
        if exc.code in (0, None):
            success = True
        else:
            _report(exc, channel)
    except BaseException as exc:
        _report(exc, channel)
    finally:
        try:
            _flush_std_streams()
            channel.close_writer()
        finally:
            os._exit(0 if success else 1)


def _report(exc: BaseException, channel: ErrorChannel) -> None:
    try:
        channel.send(describe_failure(exc))
    except Exception:
        logger.exception("child %d could not report its failure", os.getpid())


def _flush_std_streams() -> None:
    for stream in (sys.stdout, sys.stderr):
        if stream is None:
            continue
        with contextlib.suppress(AttributeError, ValueError):
            stream.flush()


def _qualified_name(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"
