"""One-shot error channel between a forked child and its parent.

The child writes at most one framed failure report and closes its end; the
parent drains the pipe only after the child has terminated.
"""

from __future__ import annotations

import logging
import os
import pickle
import struct
from typing import BinaryIO

from .types import ChannelError, FailureReport

logger = logging.getLogger(__name__)

_HEADER = struct.Struct(">I")

# Stays below the Linux pipe buffer so a child never blocks on write while
# the parent is still waiting for it to exit.
MAX_FRAME_SIZE = 60_000
_MESSAGE_LIMIT = 4_096


class ErrorChannel:
    def __init__(self) -> None:
        r_fd, w_fd = os.pipe()
        self.reader: BinaryIO = os.fdopen(r_fd, "rb")
        self.writer: BinaryIO = os.fdopen(w_fd, "wb")

    def close_reader(self) -> None:
        self.reader.close()

    def close_writer(self) -> None:
        self.writer.close()

    def send(self, report: FailureReport) -> None:
        self.writer.write(encode_report(report))
        self.writer.flush()
        self.writer.close()

    def drain(self) -> bytes:
        self.close_writer()
        try:
            return self.reader.read()
        finally:
            self.close_reader()

    def close(self) -> None:
        self.close_writer()
        self.close_reader()


def encode_report(report: FailureReport) -> bytes:
    frame = _frame(report)
    if len(frame) <= MAX_FRAME_SIZE:
        return frame

    logger.debug("failure report is %d bytes, shrinking", len(frame))
    kind, message = report.kind[:_MESSAGE_LIMIT], report.message
    backtrace = list(report.backtrace)
    frame = _frame(FailureReport(kind, message, backtrace))

    if len(frame) > MAX_FRAME_SIZE and len(message) > _MESSAGE_LIMIT:
        message = message[:_MESSAGE_LIMIT] + "... [truncated]"
        frame = _frame(FailureReport(kind, message, backtrace))

    while len(frame) > MAX_FRAME_SIZE and backtrace:
        # Innermost frames are at the end and are the most useful.
        backtrace = backtrace[len(backtrace) // 2 + 1 :]
        frame = _frame(FailureReport(kind, message, backtrace))

    return frame


def decode_report(payload: bytes) -> FailureReport | None:
    if not payload:
        return None

    if len(payload) < _HEADER.size:
        raise ChannelError(f"Truncated report header: {len(payload)} bytes")

    (length,) = _HEADER.unpack_from(payload)
    body = payload[_HEADER.size :]
    if len(body) != length:
        raise ChannelError(
            f"Report length mismatch: header says {length}, got {len(body)}"
        )

    try:
        raw = pickle.loads(body)
    except Exception as exc:
        raise ChannelError("Report body could not be unpickled") from exc

    if not isinstance(raw, dict) or not {"kind", "message", "backtrace"} <= raw.keys():
        raise ChannelError(f"Report body has unexpected shape: {type(raw)}")

    return FailureReport(
        kind=str(raw["kind"]),
        message=str(raw["message"]),
        backtrace=[str(line) for line in raw["backtrace"]],
        exception=raw.get("exception"),
    )


def _frame(report: FailureReport) -> bytes:
    body = pickle.dumps(
        {
            "kind": report.kind,
            "message": report.message,
            "backtrace": list(report.backtrace),
            "exception": report.exception,
        }
    )
    return _HEADER.pack(len(body)) + body
