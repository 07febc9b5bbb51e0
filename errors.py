"""
Error types raised by connectors and sync services
"""
from typing import Optional


class SyncError(Exception):
    """Base class for all sync errors"""
    pass


class TransportError(SyncError):
    """Request never produced a usable HTTP response (network, timeout, HTTP status)"""
    pass


class ApiError(SyncError):
    """API answered with status other than SUCCESS"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self):
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class DecodeError(SyncError):
    """Response body is not the JSON envelope we expect"""
    pass


class SyncAlreadyInProgress(SyncError):
    """Another sync of the same kind is running"""
    pass
