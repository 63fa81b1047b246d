"""Error taxonomy shared by the stores and the lifecycle service.

Services raise these; the HTTP layer maps ``kind`` to a status code.
"""


class CatalogError(Exception):
    """Base error carrying a machine-readable kind and a user-facing message."""

    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """A required field is missing or malformed."""
    kind = "validation"


class MissingFileError(CatalogError):
    kind = "missing_file"


class NotFoundError(CatalogError):
    """The record, or the blob it references, does not exist."""
    kind = "not_found"


class PayloadTooLargeError(CatalogError):
    kind = "payload_too_large"


class StorageWriteError(CatalogError):
    """The blob could not be written to disk."""
    kind = "storage_write"
