"""
Exceptions raised by the URL uploader.

Every error carries the machine-readable code and HTTP status used in the
credential service's error envelope.
"""
from typing import Any, Optional


class UploaderError(Exception):
    """Base uploader error."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None,
                 status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details


class ValidationError(UploaderError):
    """Malformed or missing input."""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidCredentialsError(UploaderError):
    """Credential material could not be parsed."""

    code = "INVALID_CREDENTIALS"
    status_code = 400


class ConfigurationError(UploaderError):
    """The active provider is not usable as configured."""

    code = "CONFIGURATION_ERROR"
    status_code = 400


class ProviderError(UploaderError):
    """The storage provider failed to issue a credential."""

    code = "PROVIDER_ERROR"
    status_code = 500


class FetchError(UploaderError):
    """The source URL could not be fetched."""

    code = "FETCH_ERROR"
    status_code = 502


class TransferError(UploaderError):
    """The signed-URL upload was rejected or interrupted."""

    code = "UPLOAD_ERROR"
    status_code = 502


class BatchInProgressError(UploaderError):
    """A batch is already running."""

    code = "BATCH_IN_PROGRESS"
    status_code = 409
