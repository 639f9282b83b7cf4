"""
Error types raised by the platstat readers.

Every failure surfaces to the immediate caller as one of three kinds:

- IOFailure: a pseudo-file could not be opened or an OS call failed.
- ParseFailure: a required field was missing or malformed.
- NotSupported: the platform has no mechanism for the operation.

Each also derives from the closest builtin (OSError, ValueError,
NotImplementedError) so callers that only know the builtins still catch them.
"""

from typing import Optional


class PlatformError(Exception):
    """Base class for all platstat errors."""

    def __init__(self, message: str, operation: str, path: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.path = path


class IOFailure(PlatformError, OSError):
    """A file or OS facility could not be read."""

    def __init__(
        self,
        message: str,
        operation: str,
        path: Optional[str] = None,
        errno: Optional[int] = None,
    ):
        super().__init__(message, operation, path)
        self.errno = errno

    @classmethod
    def from_os_error(cls, error: OSError, operation: str, path: Optional[str] = None) -> "IOFailure":
        """Wrap an OSError raised while performing ``operation``."""
        target = path if path is not None else error.filename
        return cls(
            f"{operation}: {error.strerror or error}",
            operation,
            path=str(target) if target is not None else None,
            errno=error.errno,
        )


class ParseFailure(PlatformError, ValueError):
    """A field of a kernel text format could not be scanned."""

    def __init__(
        self,
        message: str,
        operation: str,
        path: Optional[str] = None,
        field_name: Optional[str] = None,
    ):
        super().__init__(message, operation, path)
        self.field_name = field_name


class NotSupported(PlatformError, NotImplementedError):
    """The operation has no mechanism on this platform."""
