"""Errors raised by the service layer and translated at the HTTP boundary."""


class NotFoundError(Exception):
    """A referenced contact or address is missing or not owned by the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
