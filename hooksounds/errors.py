"""Custom exceptions used by the sound library."""

from __future__ import annotations


class HookSoundsError(Exception):
    """Base class for every error raised by hooksounds."""


class ValidationError(HookSoundsError):
    """Raised when a request is structurally invalid, before any I/O happens."""


class FetchError(HookSoundsError):
    """Raised when a remote source cannot be retrieved."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class TranscodeError(HookSoundsError):
    """Raised when fetched bytes cannot be converted to MP3."""


class FilesystemError(HookSoundsError):
    """Raised when a library file cannot be written or removed."""
