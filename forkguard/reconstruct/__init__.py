from .reconstructor import rebuild_failure, reconstruct
from .types import IsolationError, ProcessHung, RemoteError

__all__ = [
    "reconstruct",
    "rebuild_failure",
    "IsolationError",
    "ProcessHung",
    "RemoteError",
]
