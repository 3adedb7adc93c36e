"""
Application exceptions

Fetch and classification failures are caught at component boundaries and
reported back to callers instead of propagating.
"""
from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationException(ApplicationException):
    """Invalid or missing configuration"""


class DataUnavailableError(ApplicationException):
    """An upstream collection could not be read"""

    def __init__(self, source_name: str, message: str, details: Optional[dict] = None):
        self.source_name = source_name
        super().__init__(f"{source_name}: {message}", details)


class ClassificationError(ApplicationException):
    """The urgency classifier failed or returned an unusable answer"""
