class IsolationError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class ProcessHung(IsolationError):
    def __init__(self, pid: int, detail: str | None = None) -> None:
        message = (
            f"Child process {pid} hung or was killed abruptly. "
            "No error information could be retrieved"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.pid = pid
        self.detail = detail

    def __reduce__(self):
        return (type(self), (self.pid, self.detail))


class RemoteError(IsolationError):
    """A child failure whose type could not be rebuilt in this process."""

    def __init__(self, kind: str, message: str, backtrace: list[str] | None = None):
        super().__init__(f"{kind}: {message}")
        self.kind = kind
        self.message = message
        self.backtrace = list(backtrace or [])

    def __reduce__(self):
        return (type(self), (self.kind, self.message, self.backtrace))
