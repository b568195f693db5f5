"""
Domain-level exceptions.
"""
from typing import Sequence


class InvalidArgumentError(ValueError):
    """Raised when an operation receives input it cannot process."""
    pass


class MissingFieldsError(InvalidArgumentError):
    """Raised when required fields are absent from a request."""

    def __init__(self, required: Sequence[str], missing: Sequence[str]):
        self.required = list(required)
        self.missing = list(missing)
        super().__init__(f"Missing required fields: {', '.join(self.missing)}")


class NotFoundError(LookupError):
    """Raised when a requested survey entity does not exist."""
    pass
