"""
Error taxonomy for the PhotoAI editing core.

Every failure a pipeline operation can report is one of these. The edit
session never applies a partial update, so catching any of them means the
session still holds the state it had before the call.

Classes:
    PhotoAIError: Base class for all editing-core errors
    InvalidBuffer: Zero-area or malformed raster
    PreconditionFailed: Operation invoked before its dependency
    ServiceError: External background-removal (or fetch) call failed
    DecodeError: Input image could not be decoded
"""


class PhotoAIError(Exception):
    """Base class for errors raised by the editing core."""


class InvalidBuffer(PhotoAIError):
    """Raised when a raster has zero area or inconsistent pixel data."""


class PreconditionFailed(PhotoAIError):
    """Raised when an operation runs before the state it depends on exists."""


class ServiceError(PhotoAIError):
    """Raised when an external service call fails as a unit."""


class DecodeError(PhotoAIError):
    """Raised when an input image cannot be decoded into a raster."""
