import signal
from dataclasses import dataclass
from enum import Enum, auto

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGKILL)
DEFAULT_FALLBACK_EXIT_CODE = 99


class WaitState(Enum):
    POLLING = auto()
    ESCALATING = auto()
    DONE = auto()


@dataclass(frozen=True)
class EscalationPolicy:
    """How long to wait for a child and how to terminate it afterwards.

    ``timeout`` of ``None`` waits forever. ``grace_period`` is the minimum
    delay between two escalation signals; the default of zero sends the next
    signal on the very next poll.
    """

    timeout: float | None = 10.0
    grace_period: float = 0.0
    poll_interval: float = 0.01
    fallback_exit_code: int = DEFAULT_FALLBACK_EXIT_CODE
    signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")
        if self.grace_period < 0:
            raise ValueError(f"grace_period must be >= 0, got {self.grace_period}")
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {self.poll_interval}")
        if not self.signals:
            raise ValueError("signals must not be empty")
