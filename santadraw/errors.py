from __future__ import annotations


class DrawError(RuntimeError):
    """Base class for every failure a draw operation can surface to a caller."""

    status_code = 500
    default_message = "Something went wrong with this draw."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DrawError):
    status_code = 400
    default_message = "Invalid input."


class InsufficientParticipants(ValidationError):
    default_message = "At least 2 participants are needed to run the draw."


class NotFound(DrawError):
    status_code = 404
    default_message = "Draw not found."


class NotReady(DrawError):
    status_code = 409
    default_message = "The draw is not ready yet."


class Conflict(DrawError):
    """The draw is being modified by another request and the lock wait timed out."""

    status_code = 409
    default_message = "This draw is busy, please try again."


class InternalError(DrawError):
    status_code = 500
    default_message = "Internal error while processing the draw."


class DerangementUnreachable(InternalError):
    default_message = "Could not generate a valid draw. Please try again."
