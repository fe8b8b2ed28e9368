from .types import DEFAULT_FALLBACK_EXIT_CODE, DEFAULT_SIGNALS, EscalationPolicy, WaitState
from .waiter import wait_for_exit

__all__ = [
    "wait_for_exit",
    "EscalationPolicy",
    "WaitState",
    "DEFAULT_SIGNALS",
    "DEFAULT_FALLBACK_EXIT_CODE",
]
