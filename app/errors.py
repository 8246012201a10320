# app/errors.py


class TyperpunkError(Exception):
    """Base class for every error raised by the app."""


class EngineInitFailure(TyperpunkError):
    """The typing engine could not be constructed or given its text."""


class EngineCallFailure(TyperpunkError):
    """An engine operation raised while the serializer was draining."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {type(cause).__name__}: {cause}")
        self.operation = operation
        self.cause = cause


class InvalidState(TyperpunkError):
    """An engine call that is not allowed in the engine's current state."""


class HandleReleased(TyperpunkError):
    """The engine handle was used after it had been released."""
