from .loader import load_config
from .types import ConfigError, IsolationConfig, UnsupportedConfigFormatError

__all__ = [
    "load_config",
    "IsolationConfig",
    "ConfigError",
    "UnsupportedConfigFormatError",
]
