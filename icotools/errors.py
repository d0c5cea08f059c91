# icotools/errors.py


class IcoError(Exception):
    """Base class for everything the ICO reader/writer raises."""


class InvalidInput(IcoError, ValueError):
    """Bad caller arguments: empty size list, out-of-range dimension, unreadable source image."""


class InvalidFormat(IcoError, ValueError):
    """Bytes are not a well-formed icon container."""


class EncodingFailure(IcoError):
    """PNG encoding failed; the codec error is chained as __cause__."""


class DecodingFailure(IcoError):
    """An embedded bitmap could not be decoded; the codec error is chained as __cause__."""


class EmptyResult(IcoError):
    """
    Raised only by operations that must hand back an image.
    `decode()` itself returns an empty list for a zero-image icon.
    """
