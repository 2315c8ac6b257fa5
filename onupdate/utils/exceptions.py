class OnUpdateError(Exception):
    """Base exception for all onupdate errors."""


class DocumentNotFound(OnUpdateError):
    """Raised when a document is not found in the database."""


class NotConnected(OnUpdateError):
    """Raised when attempting to use a database that is not connected."""


class InvalidConfiguration(OnUpdateError):
    """Raised when an on-update hook declaration is malformed."""
