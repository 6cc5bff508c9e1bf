"""
verifyReceipt status code interpretation.

https://developer.apple.com/documentation/appstorereceipts/status
"""

from receipt_verifier.exceptions import StatusError
from receipt_verifier.models.appstore import StatusCode

STATUS_MESSAGES: dict[int, str] = {
    StatusCode.INVALID_JSON: "The App Store could not read the JSON object you provided.",
    StatusCode.MALFORMED_RECEIPT_DATA: (
        "The data in the receipt-data property was malformed or missing."
    ),
    StatusCode.RECEIPT_NOT_AUTHENTICATED: "The receipt could not be authenticated.",
    StatusCode.SHARED_SECRET_MISMATCH: (
        "The shared secret you provided does not match the shared secret on file "
        "for your account."
    ),
    StatusCode.SERVER_UNAVAILABLE: "The receipt server is not currently available.",
    StatusCode.SANDBOX_RECEIPT_IN_PRODUCTION: (
        "This receipt is from the test environment, but it was sent to the production "
        "environment for verification. Send it to the test environment instead."
    ),
    StatusCode.PRODUCTION_RECEIPT_IN_SANDBOX: (
        "This receipt is from the production environment, but it was sent to the test "
        "environment for verification. Send it to the production environment instead."
    ),
    StatusCode.RECEIPT_UNAUTHORIZED: (
        "This receipt could not be authorized. Treat this the same as if a purchase "
        "was never made."
    ),
}

INTERNAL_DATA_ACCESS_MESSAGE = "Internal data access error."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


def handle_error(status: int) -> StatusError | None:
    """
    Interpret a verifyReceipt status code.

    Args:
        status: The ``status`` field of a verifyReceipt response

    Returns:
        None for a successful status (0), otherwise a StatusError describing it.
        The error is returned, not raised; callers decide whether to raise it.
    """
    if status == StatusCode.OK:
        return None

    message = STATUS_MESSAGES.get(status)
    if message is None:
        if StatusCode.INTERNAL_DATA_ACCESS_FIRST <= status <= StatusCode.INTERNAL_DATA_ACCESS_LAST:
            message = INTERNAL_DATA_ACCESS_MESSAGE
        else:
            message = UNKNOWN_ERROR_MESSAGE

    return StatusError(status, message)
