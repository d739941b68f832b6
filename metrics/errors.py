"""Error taxonomy for the relay"""
from typing import Optional


class RelayError(Exception):
    """Base class for relay errors"""


class ValidationError(RelayError):
    """Request rejected before the pipeline runs (missing cluster id, bad method)"""


class ParseError(RelayError):
    """Malformed exposition text.

    Carries the 1-based line and column of the offending construct.
    """

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}: {self.message}"


class DeliveryError(RelayError):
    """Downstream rejected the payload or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ResolutionError(RelayError):
    """Geographic lookup failure; never leaves the resolver"""
