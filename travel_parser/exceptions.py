"""Custom exceptions for the travel document parser."""


class TravelParserError(Exception):
    """Base exception for travel parser errors."""

    pass


class ConfigurationError(TravelParserError):
    """Raised when configuration is missing or invalid."""

    pass


class UnknownModelError(ConfigurationError):
    """Raised when a model id is not in the model catalog."""

    pass


class PDFExtractionError(TravelParserError):
    """Raised when text extraction from a PDF fails."""

    pass


class JSONExtractionError(ValueError, TravelParserError):
    """Raised when no valid JSON object can be recovered from a model response."""

    pass


class JobNotFoundError(TravelParserError):
    """Raised when a job or parsed document record does not exist."""

    pass


class InvalidJobTransitionError(TravelParserError):
    """Raised when a job status change would leave a terminal state."""

    pass


class ForbiddenError(TravelParserError):
    """Raised when a user reads a record owned by someone else."""

    pass


class FileFetchError(TravelParserError):
    """Raised when the source document cannot be downloaded."""

    pass


class CredentialExpiredError(FileFetchError):
    """Raised by file fetchers when the access credential has expired."""

    pass
