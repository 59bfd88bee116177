"""Exceptions raised by the collection engine."""


class CollectionKitError(Exception):
    """Base class for collection engine errors."""


class ConfigurationError(CollectionKitError):
    """A collection declaration could not be read statically.

    Raised for non-literal patterns or options and for metadata exports that
    a collection expects but a file does not provide.
    """


class NotFoundError(CollectionKitError):
    """A collection's glob pattern matched no files."""


class ExtractionError(CollectionKitError):
    """An export could not be isolated from its module."""


class ValidationError(CollectionKitError):
    """A value failed structural validation."""


class RemoteError(CollectionKitError):
    """An RPC call returned an error object."""

    def __init__(self, code: int, message: str, data=None):
        super().__init__(message)
        self.code = code
        self.data = data
