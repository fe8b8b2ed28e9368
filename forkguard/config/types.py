from dataclasses import dataclass


@dataclass(frozen=True)
class IsolationConfig:
    timeout: float | None = 10.0
    poll_interval: float = 0.01
    grace_period: float = 0.0
    fallback_exit_code: int = 99


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
