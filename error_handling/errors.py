"""Error kinds surfaced by transaction resolution."""
from typing import Any, Dict


class ResolutionError(Exception):
    """Base class for all resolution failures.

    Carries an HTTP-style status code so callers can tell a bad request or a
    missing transaction apart from an infrastructure failure.
    """

    code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "code": self.code, "message": self.message}


class InvalidArgument(ResolutionError):
    """A required request field is missing."""

    code = 400


class NotFound(ResolutionError):
    """The transaction is not present in the requested block."""

    code = 404


class CodecError(ResolutionError):
    """Raw block bytes could not be decoded."""

    code = 503


class UpstreamError(ResolutionError):
    """The chain or cache backend failed."""

    code = 503


class CacheUnavailable(UpstreamError):
    """The cache store could not be read or written."""
