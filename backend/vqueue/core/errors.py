"""Domain errors raised by the queue services.

Each error carries the HTTP status the API answers with; the app factory
registers a single handler that renders ``{"detail": message}``.
"""


class QueueError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(QueueError):
    status_code = 404


class ClosedError(QueueError):
    status_code = 409


class QueueEmptyError(QueueError):
    status_code = 409


class ConflictError(QueueError):
    status_code = 409


class ValidationError(QueueError):
    status_code = 422


class InvalidTransitionError(ValidationError):
    pass
