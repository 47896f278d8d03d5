"""
Exceptions for the Safe relay SDK.
"""
from typing import Any, Optional


class SafeRelayError(Exception):
    """Base exception for all SDK errors."""
    pass


class EncodingError(SafeRelayError):
    """Raised when a wire value (address, hash, integer, hex data) is malformed."""
    pass


class ValidationError(SafeRelayError):
    """Raised when a transaction or signature set fails local validation."""
    pass


class InvalidSignatureError(ValidationError):
    """Raised when a signature does not recover to its claimed signer."""

    def __init__(self, message: str, signer: Optional[str] = None):
        self.signer = signer
        super().__init__(message)


class DuplicateSignerError(ValidationError):
    """Raised when the same signer appears more than once in a signature set."""

    def __init__(self, message: str, signer: Optional[str] = None):
        self.signer = signer
        super().__init__(message)


class TransportError(SafeRelayError):
    """Raised when the HTTP exchange with the relay could not be completed."""
    pass


class RejectedByServiceError(SafeRelayError):
    """
    Raised when the relay answers with a non-success HTTP status.

    Most often this is a nonce conflict (another proposal already claimed the
    nonce) or a malformed request. The SDK does not try to tell them apart.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: str = "",
        request_body: Any = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        self.request_body = request_body
        self.method = method
        self.url = url
        super().__init__(message)
