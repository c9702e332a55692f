"""Courier exceptions.

These are raised from the transfer engine and its collaborators. Any of them
reaching the driver ends the session with a non-zero exit status.
"""


class CourierError(Exception):
    """Base class for all session-fatal errors."""


class ProtocolError(CourierError):
    """The caller broke the custom transfer protocol (event ordering,
    duplicate init, wrong request kind for the negotiated operation).
    """


class DecodeError(ProtocolError):
    """A line received from the caller could not be decoded into an event."""

    def __init__(
        self, message: str, line: str | None = None, lineno: int | None = None
    ) -> None:
        super().__init__(message)
        self.line = line
        self.lineno = lineno

    def __str__(self) -> str:
        message = super().__str__()
        if self.lineno is not None:
            return f"line {self.lineno}: {message}"
        return message


class UploadError(CourierError):
    """An object could not be uploaded to the storage backend."""

    def __init__(self, oid: str, reason: Exception | str) -> None:
        super().__init__(f"Failed to upload object {oid}: {reason}")
        self.oid = oid
        self.reason = reason


class ConfigStoreError(CourierError):
    """Reading or writing the mapping store failed."""
