"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.

Transport failures are not wrapped: httpx errors, TimeoutError and
asyncio.CancelledError reach the caller unchanged.
"""


class ReceiptVerifierError(Exception):
    """Base exception for all receipt verifier errors."""

    pass


class ResponseDecodeError(ReceiptVerifierError):
    """Raised when a verifyReceipt body is not valid JSON or doesn't fit the target type."""

    def __init__(self, message: str, body: bytes = b"") -> None:
        self.message = message
        self.body = body
        super().__init__(f"Response decode failed: {message}")


class StatusError(ReceiptVerifierError):
    """A non-zero verifyReceipt status code turned into an error."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(message)
