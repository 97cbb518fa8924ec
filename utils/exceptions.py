"""
Custom Exceptions
Error types shared by adapters, pipeline and entry points
"""


class AirDropError(Exception):
    """Base error for the QA hand-off tooling"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(AirDropError):
    """Missing or invalid configuration"""
    pass


class TrackerError(AirDropError):
    """Work-item tracker request failed"""

    def __init__(self, message: str, status_code: int = None, **kwargs):
        super().__init__(message, kwargs)
        self.status_code = status_code


class SubmissionError(TrackerError):
    """Final comment could not be posted"""
    pass


class StorageError(AirDropError):
    """Cloud storage request failed"""

    def __init__(self, message: str, status_code: int = None, **kwargs):
        super().__init__(message, kwargs)
        self.status_code = status_code


class SpreadsheetError(AirDropError):
    """Spreadsheet bytes could not be parsed"""
    pass


class DispatchError(AirDropError):
    """Remote job trigger failed"""

    def __init__(self, message: str, status_code: int = None, **kwargs):
        super().__init__(message, kwargs)
        self.status_code = status_code
