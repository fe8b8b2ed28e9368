from dataclasses import dataclass


@dataclass(frozen=True)
class ChildResult:
    pid: int
    exit_code: int
    raw_payload: bytes
    duration_s: float
