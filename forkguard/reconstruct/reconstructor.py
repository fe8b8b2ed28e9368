from __future__ import annotations

import importlib
import logging
import pickle

from forkguard.channel import ChannelError, FailureReport, decode_report

from .types import ProcessHung, RemoteError

logger = logging.getLogger(__name__)


def reconstruct(pid: int, exit_code: int, payload: bytes) -> None:
    """Return normally for a clean exit, otherwise raise the child's failure."""
    if exit_code == 0:
        return

    try:
        report = decode_report(payload)
    except ChannelError as exc:
        logger.debug("child %d left an unreadable report: %s", pid, exc)
        raise ProcessHung(pid, f"exit code {exit_code}, corrupt report") from exc

    if report is None:
        raise ProcessHung(pid, f"exit code {exit_code}")

    raise rebuild_failure(report, pid)


def rebuild_failure(report: FailureReport, pid: int | None = None) -> BaseException:
    error = _unpickle(report) or _construct(report) or RemoteError(
        report.kind, report.message, report.backtrace
    )

    try:
        error.remote_backtrace = list(report.backtrace)
        error.remote_pid = pid
    except AttributeError:
        logger.debug("cannot attach backtrace to %s", report.kind)
        return error

    if report.backtrace:
        origin = f"process {pid}" if pid is not None else "child process"
        error.add_note(
            f"Traceback in {origin} (most recent call last):\n"
            + "".join(report.backtrace).rstrip("\n")
        )
    return error


def _unpickle(report: FailureReport) -> BaseException | None:
    if report.exception is None:
        return None
    try:
        error = pickle.loads(report.exception)
    except Exception as exc:
        logger.debug("cannot unpickle %s: %s", report.kind, exc)
        return None
    if not isinstance(error, BaseException):
        return None
    return error


def _construct(report: FailureReport) -> BaseException | None:
    cls = _resolve(report.kind)
    if cls is None:
        return None
    try:
        return cls(report.message)
    except Exception as exc:
        logger.debug("cannot construct %s: %s", report.kind, exc)
        return None


def _resolve(kind: str) -> type[BaseException] | None:
    parts = kind.split(".") if "." in kind else ["builtins", kind]

    # Longest importable prefix is the module, the rest is a (nested) qualname.
    for split in range(len(parts) - 1, 0, -1):
        try:
            obj: object = importlib.import_module(".".join(parts[:split]))
        except ImportError:
            continue
        except Exception as exc:
            # A module that breaks on import cannot supply the class either.
            logger.debug("importing %s for %s failed: %s", ".".join(parts[:split]), kind, exc)
            return None
        for part in parts[split:]:
            obj = getattr(obj, part, None)
            if obj is None:
                return None
        if isinstance(obj, type) and issubclass(obj, BaseException):
            return obj
        return None
    return None
