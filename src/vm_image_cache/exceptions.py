"""Custom exceptions for the VM image cache."""


class ImageCacheError(Exception):
    """Base exception for all image cache errors."""

    pass


class MalformedReferenceError(ImageCacheError):
    """Raised when a reference string cannot be parsed."""

    pass


class AlreadyExistsError(ImageCacheError):
    """Raised when a bundle already occupies the requested path."""

    pass


class NotFoundError(ImageCacheError):
    """Raised when a reference resolves to no image or container."""

    pass


class InvalidOperationError(ImageCacheError):
    """Raised when a request is semantically invalid, e.g. a self-clone."""

    pass


class CorruptBundleError(ImageCacheError):
    """Raised when a bundle's state record cannot be read."""

    pass


class IOFailureError(ImageCacheError):
    """Raised when an underlying filesystem or process call fails."""

    pass
