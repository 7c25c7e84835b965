"""Error taxonomy for core operations.

Every core operation is all-or-nothing: when one of these is raised the
model is exactly as it was before the call. None of them is fatal; the
project facade turns them into error responses and warning notifications.
"""


class StudioError(Exception):
    """Base class for rejected core operations."""

    code = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(StudioError):
    """Raised when a connection or rack rule would be violated."""

    code = "validation"


class NotFoundError(StudioError):
    """Raised when a referenced instance, port or rack does not exist."""

    code = "not_found"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class MalformedInputError(StudioError):
    """Raised when a drop payload or persisted document cannot be decoded."""

    code = "malformed_input"


__all__ = [
    "StudioError",
    "ValidationError",
    "NotFoundError",
    "MalformedInputError",
]
