"""Error kinds raised by the decoders.

Decode errors abort the whole decode of one file; there is no partial result.
Read errors carry the failing path and chain the original OSError.
An unrecognized line is not an error: decoders log it and continue.
"""
from __future__ import annotations
from typing import Optional


class ProcfsError(Exception):
    """Base class for everything a decoder raises."""

    kind = 'procfs_error'

    def to_dict(self) -> dict:
        return {'error': self.kind, 'detail': str(self)}


class DecodeError(ProcfsError, ValueError):
    kind = 'decode_error'

    def __init__(self, message: str, line: Optional[str] = None):
        self.line = line
        if line is not None:
            message = f"{message} (line: {line[:160]!r})"
        super().__init__(message)


class MissingField(DecodeError):
    """Fewer tokens than the line grammar requires."""
    kind = 'missing_field'


class NotANumber(DecodeError):
    """A token failed to parse in its expected base or width."""
    kind = 'not_a_number'


class MalformedDocument(DecodeError):
    """The document as a whole violates its structure (e.g. a domain before any cpu)."""
    kind = 'malformed_document'


class ProcfsReadError(ProcfsError):
    """Reading the underlying file or directory failed."""

    kind = 'io'

    def __init__(self, path: str, error: OSError):
        self.path = path
        self.error = error
        super().__init__(f"error reading {path}: {error.strerror or error}")

    @property
    def errno(self) -> Optional[int]:
        return self.error.errno

    def to_dict(self) -> dict:
        return {'error': self.kind, 'detail': str(self), 'path': self.path}
