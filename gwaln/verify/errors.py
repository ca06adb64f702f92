"""Errors raised by the network-backed verifiers."""


class ExternalServiceError(Exception):
    """Raised when a verification service cannot be reached or answers badly."""

    def __init__(self, service: str, message: str, original_error: Exception = None):
        self.service = service
        self.original_error = original_error
        super().__init__(f"[{service}] {message}")
