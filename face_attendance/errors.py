"""Exception and warning types raised by the recognition pipeline."""


class FaceAttendanceError(Exception):
    """Base class for pipeline errors."""


class DecodeError(FaceAttendanceError):
    """Raised when an image source cannot be decoded into pixels."""


class ResizeError(FaceAttendanceError):
    """Raised when an image has degenerate geometry (zero width or height)."""


class ModelInvocationError(FaceAttendanceError):
    """Raised when the embedding model fails or returns malformed output."""


class ModelLoadError(FaceAttendanceError):
    """Raised when the embedding model or face detector cannot be loaded."""


class NotInitializedError(FaceAttendanceError):
    """Raised when the service is used outside its ready state."""


class RegistrationError(FaceAttendanceError):
    """Raised when a registration cannot be completed or stored."""


class LengthMismatchWarning(UserWarning):
    """Emitted when two embeddings of different length are compared."""
