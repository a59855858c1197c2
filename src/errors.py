"""Exception types raised by the missing-translation report job."""
from typing import Optional


class ReportError(Exception):
    """Base class for all report job errors."""


class ConfigurationError(ReportError):
    """A credential or required setting is missing or invalid."""


class ValidationError(ReportError):
    """The trigger payload is malformed or incomplete."""


class UpstreamServiceError(ReportError):
    """A call to the content store, translation service or email gateway failed."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")
