from .config import IsolationConfig, load_config
from .executor import isolated, run_isolated
from .reconstruct import IsolationError, ProcessHung, RemoteError
from .waiter import EscalationPolicy

__version__ = "1.0.0"

__all__ = [
    "run_isolated",
    "isolated",
    "IsolationConfig",
    "load_config",
    "EscalationPolicy",
    "IsolationError",
    "ProcessHung",
    "RemoteError",
]
