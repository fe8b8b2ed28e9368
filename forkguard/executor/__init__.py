from .executor import DEFAULT_TIMEOUT, isolated, run_child, run_isolated
from .types import ChildResult

__all__ = ["run_isolated", "run_child", "isolated", "ChildResult", "DEFAULT_TIMEOUT"]
