from dataclasses import dataclass, field


@dataclass(frozen=True)
class FailureReport:
    kind: str
    message: str
    backtrace: list[str] = field(default_factory=list)
    exception: bytes | None = None


class ChannelError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
