from .pipe import ErrorChannel, decode_report, encode_report
from .types import ChannelError, FailureReport

__all__ = [
    "ErrorChannel",
    "encode_report",
    "decode_report",
    "FailureReport",
    "ChannelError",
]
