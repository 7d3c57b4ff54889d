"""
Errors raised by the standalone helpers in vibey.utils.

Kept apart from vibey.exceptions so these helpers import nothing from the
agent packages.
"""


class UtilityError(Exception):
    """Base class for helper failures."""


class JsonParsingError(UtilityError):
    """A JSON candidate could not be decoded."""

    def __init__(self, message, original_error=None, partial_data=None, position=None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.partial_data = partial_data
        self.position = position
