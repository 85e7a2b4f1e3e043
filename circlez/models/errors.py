class CirclezError(Exception):
    """Base class for failures that end a run."""


class DecodeError(CirclezError):
    """Target image is missing, unreadable or in an unsupported format."""


class WriteError(CirclezError):
    """Output image could not be written."""
