"""Errors raised by the generation pipeline."""


class EpubGenError(Exception):
    """Base class for errors that abort a generation run."""


class ValidationError(EpubGenError):
    """A manifest field is missing or malformed."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"manifest key {field!r}: {message}")


class FetchError(EpubGenError):
    """A content file or resource could not be read."""

    def __init__(self, path: str, reason: str = "not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"could not read {path!r}: {reason}")


class SerializationInvariantError(EpubGenError):
    """The package document references an item it never declared."""
