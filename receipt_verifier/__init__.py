"""
App Store receipt verifier.

Async client for Apple's verifyReceipt endpoint with automatic sandbox
fallback for receipts issued by the sandbox environment.

Usage:
    async with AppStoreClient(is_production=False) as client:
        response = await client.verify(IAPRequest(receipt_data=receipt_b64))
        if error := handle_error(response.status):
            raise error
"""

from receipt_verifier.config import PRODUCTION_URL, SANDBOX_URL, ConfigurationError
from receipt_verifier.exceptions import ReceiptVerifierError, ResponseDecodeError, StatusError
from receipt_verifier.models.appstore import (
    Environment,
    IAPRequest,
    IAPResponse,
    IAPResponseForIOS6,
    InApp,
    PendingRenewalInfo,
    PurchaseIAPResponse,
    PurchaseReceipt,
    Receipt,
    ReceiptForIOS6,
    StatusCode,
    StatusResponse,
)
from receipt_verifier.services.appstore_client import CONTENT_TYPE, AppStoreClient
from receipt_verifier.services.status import handle_error

__all__ = [
    "CONTENT_TYPE",
    "PRODUCTION_URL",
    "SANDBOX_URL",
    "AppStoreClient",
    "ConfigurationError",
    "Environment",
    "IAPRequest",
    "IAPResponse",
    "IAPResponseForIOS6",
    "InApp",
    "PendingRenewalInfo",
    "PurchaseIAPResponse",
    "PurchaseReceipt",
    "Receipt",
    "ReceiptForIOS6",
    "ReceiptVerifierError",
    "ResponseDecodeError",
    "StatusCode",
    "StatusError",
    "StatusResponse",
    "handle_error",
]
