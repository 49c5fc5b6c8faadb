"""Exceptions raised by procure readers."""


class ProcureError(Exception):
    """Base class for every failure reported by procure."""


class ProcureRuntimeError(ProcureError):
    """The source did not have the expected shape (e.g. no first line)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProcureIoError(ProcureError):
    """The source could not be opened or read."""

    def __init__(self, underlying: OSError) -> None:
        super().__init__(str(underlying))
        self.underlying = underlying


class ProcureParseError(ProcureError):
    """A counter token could not be parsed as an integer."""

    def __init__(self, underlying: ValueError, line: str | None = None) -> None:
        message = str(underlying)
        if line is not None:
            message = f"{message} (line: {line.strip()!r})"
        super().__init__(message)
        self.underlying = underlying
        self.line = line
