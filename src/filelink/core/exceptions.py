"""Custom exceptions for FileLink application"""


class FileLinkError(Exception):
    """Base exception for FileLink application"""

    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred on the server."):
        super().__init__(message)
        self.message = message


class InvalidPathError(FileLinkError):
    """A path field was missing its textual form or otherwise malformed"""

    status_code = 400


class PathTypeError(FileLinkError):
    """The target is a directory where a file is expected, or the reverse"""

    status_code = 400


class AccessDeniedError(FileLinkError):
    """A resolved path escapes the storage root"""

    status_code = 403


class ConflictError(FileLinkError):
    """The destination of an operation is already occupied"""

    status_code = 409


class BackupError(FileLinkError):
    """Archive creation failed"""

    pass


class ConfigurationError(FileLinkError):
    """Configuration-related errors"""

    pass


class ListingError(FileLinkError):
    """An entry of an existing directory could not be inspected"""

    pass
