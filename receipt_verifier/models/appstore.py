"""
App Store verifyReceipt models - Pydantic models for the wire format.

NO DICTIONARIES - All data uses strongly typed models.

Apple's documented fields are listed explicitly; anything else the service
returns is kept as an extra attribute so newer fields survive decoding.
https://developer.apple.com/documentation/appstorereceipts/verifyreceipt
"""

from enum import Enum, IntEnum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, Strict, field_validator


class Environment(str, Enum):
    """Environment that issued a receipt."""

    SANDBOX = "Sandbox"
    PRODUCTION = "Production"


class StatusCode(IntEnum):
    """Documented verifyReceipt status codes."""

    OK = 0
    INVALID_JSON = 21000
    MALFORMED_RECEIPT_DATA = 21002
    RECEIPT_NOT_AUTHENTICATED = 21003
    SHARED_SECRET_MISMATCH = 21004
    SERVER_UNAVAILABLE = 21005
    SANDBOX_RECEIPT_IN_PRODUCTION = 21007
    PRODUCTION_RECEIPT_IN_SANDBOX = 21008
    RECEIPT_UNAUTHORIZED = 21010
    INTERNAL_DATA_ACCESS_FIRST = 21100
    INTERNAL_DATA_ACCESS_LAST = 21199


def _numeric_to_str(value: object) -> object:
    """Apple sends some identifiers as JSON numbers and others as strings."""
    if isinstance(value, bool):
        raise ValueError("expected a number or numeric string")
    if isinstance(value, int | float):
        return str(value)
    return value


NumericString = Annotated[str, BeforeValidator(_numeric_to_str)]

# Status is a JSON integer; a quoted "21007" is a decode error, not a code
StatusInt = Annotated[int, Strict()]


class AppStoreModel(BaseModel):
    """Base for response models: tolerant of missing fields, keeps unknown ones."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ============================================================================
# Request
# ============================================================================


class IAPRequest(BaseModel):
    """verifyReceipt request body."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    receipt_data: str = Field(..., alias="receipt-data", min_length=1)
    # Only used for receipts that contain auto-renewable subscriptions
    password: str | None = None
    # iOS 7 style receipts only: return just the latest renewal per subscription
    exclude_old_transactions: bool = Field(default=False, alias="exclude-old-transactions")

    @field_validator("password")
    @classmethod
    def empty_password_is_none(cls, v: str | None) -> str | None:
        """An empty shared secret is the same as none at all."""
        return v or None

    def to_json(self) -> bytes:
        """Serialize with Apple's hyphenated keys, omitting an absent password."""
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


# ============================================================================
# Date field groups (shared by several receipt schemas)
# ============================================================================


class ReceiptCreationDate(AppStoreModel):
    receipt_creation_date: str = ""
    receipt_creation_date_ms: str = ""
    receipt_creation_date_pst: str = ""


class RequestDate(AppStoreModel):
    request_date: str = ""
    request_date_ms: str = ""
    request_date_pst: str = ""


class PurchaseDate(AppStoreModel):
    purchase_date: str = ""
    purchase_date_ms: str = ""
    purchase_date_pst: str = ""


class OriginalPurchaseDate(AppStoreModel):
    """Beginning of the subscription period."""

    original_purchase_date: str = ""
    original_purchase_date_ms: str = ""
    original_purchase_date_pst: str = ""


class ExpiresDate(AppStoreModel):
    expires_date: str | None = None
    expires_date_ms: str | None = None
    expires_date_pst: str | None = None
    expires_date_formatted: str | None = None
    expires_date_formatted_pst: str | None = None


class CancellationDate(AppStoreModel):
    """Set when Apple customer support cancelled the transaction."""

    cancellation_date: str | None = None
    cancellation_date_ms: str | None = None
    cancellation_date_pst: str | None = None


# ============================================================================
# iOS 7 style app receipt
# ============================================================================


class InApp(ExpiresDate, PurchaseDate, OriginalPurchaseDate, CancellationDate):
    """One in-app purchase transaction."""

    quantity: str = ""
    product_id: str = ""
    transaction_id: str = ""
    original_transaction_id: str = ""
    web_order_line_item_id: str | None = None
    is_trial_period: str = ""
    cancellation_reason: str | None = None

    def is_trial(self) -> bool:
        """Check if the transaction was in a free trial period."""
        return self.is_trial_period == "true"

    def is_cancelled(self) -> bool:
        """Check if Apple customer support cancelled the transaction."""
        return bool(self.cancellation_date or self.cancellation_date_ms)


class Receipt(ReceiptCreationDate, RequestDate, OriginalPurchaseDate):
    """Decoded app receipt."""

    receipt_type: str = ""
    adam_id: int = 0
    app_item_id: NumericString = ""
    bundle_id: str = ""
    application_version: str = ""
    download_id: int = 0
    version_external_identifier: NumericString = ""
    original_application_version: str = ""
    in_app: list[InApp] = Field(default_factory=list)


class PendingRenewalInfo(AppStoreModel):
    """A scheduled renewal, or one that failed in the past."""

    expiration_intent: str = ""
    auto_renew_product_id: str = ""
    is_in_billing_retry_period: str = ""
    auto_renew_status: str = ""
    price_consent_status: str = ""
    product_id: str = ""


class StatusResponse(AppStoreModel):
    """Only the status code, read before the full body is decoded."""

    model_config = ConfigDict(extra="ignore")

    status: StatusInt = 0


class IAPResponse(AppStoreModel):
    """verifyReceipt response for iOS 7 style app receipts.

    Fields not covered here are still available as model extras; callers
    needing a stricter shape can pass their own result type to verify().
    """

    status: StatusInt = 0
    environment: Environment | None = None
    receipt: Receipt = Field(default_factory=Receipt)
    latest_receipt_info: list[InApp] = Field(default_factory=list)
    latest_receipt: str | None = None
    pending_renewal_info: list[PendingRenewalInfo] = Field(default_factory=list)
    is_retryable: bool = Field(default=False, alias="is-retryable")

    def is_valid(self) -> bool:
        """Check if Apple accepted the receipt."""
        return self.status == StatusCode.OK

    def is_sandbox(self) -> bool:
        """Check if the receipt came from the sandbox environment."""
        return self.environment == Environment.SANDBOX


# ============================================================================
# iOS 6 style transaction receipt
# ============================================================================


class ReceiptForIOS6(ExpiresDate, PurchaseDate, OriginalPurchaseDate, CancellationDate):
    app_item_id: NumericString = ""
    bid: str = ""
    bvrs: str = ""
    is_trial_period: str = ""
    is_in_intro_offer_period: str = ""
    item_id: str = ""
    product_id: str = ""
    original_transaction_id: str = ""
    quantity: str = ""
    transaction_id: str = ""
    unique_identifier: str = ""
    unique_vendor_identifier: str = ""
    version_external_identifier: NumericString = ""
    web_order_line_item_id: str = ""


class IAPResponseForIOS6(AppStoreModel):
    """verifyReceipt response for iOS 6 style transaction receipts."""

    auto_renew_product_id: str = ""
    auto_renew_status: int = 0
    cancellation_reason: str | None = None
    expiration_intent: str | None = None
    is_in_billing_retry_period: str | None = None
    latest_receipt_info: ReceiptForIOS6 = Field(
        default_factory=ReceiptForIOS6, alias="latest_expired_receipt_info"
    )
    receipt: ReceiptForIOS6 = Field(default_factory=ReceiptForIOS6)
    status: StatusInt = 0


# ============================================================================
# Purchase result receipt
# ============================================================================


class PurchaseReceipt(AppStoreModel):
    """Receipt returned for a purchase, flattened into one object."""

    quantity: str | None = None
    unique_vendor_identifier: str | None = None
    bvrs: str | None = None
    app_item_id: NumericString | None = None
    expires_date: str | None = None
    expires_date_formatted: str | None = None
    expires_date_formatted_pst: str | None = None
    is_in_intro_offer_period: str | None = None
    is_trial_period: str | None = None
    item_id: str | None = None
    unique_identifier: str | None = None
    original_transaction_id: str | None = None
    transaction_id: str | None = None
    web_order_line_item_id: str | None = None
    bid: str | None = None
    product_id: str | None = None
    purchase_date: str | None = None
    purchase_date_ms: str | None = None
    purchase_date_pst: str | None = None
    original_purchase_date: str | None = None
    original_purchase_date_ms: str | None = None
    original_purchase_date_pst: str | None = None
    version_external_identifier: str | None = None
    bundle_id: str = ""
    application_version: str = ""
    receipt_creation_date: str = ""
    receipt_creation_date_ms: str = ""
    receipt_creation_date_pst: str = ""
    is_in_billing_retry_period: str | None = None


class PurchaseIAPResponse(AppStoreModel):
    """verifyReceipt response decoded as a purchase result.

    The auto-renew and latest_* fields are only present for renewable products.
    """

    auto_renew_status: int = Field(default=0, ge=0)
    status: Annotated[StatusInt, Field(ge=0)] = 0
    auto_renew_product_id: str = ""
    receipt: PurchaseReceipt = Field(default_factory=PurchaseReceipt)
    latest_receipt_info: PurchaseReceipt = Field(default_factory=PurchaseReceipt)
    latest_expired_receipt_info: PurchaseReceipt = Field(default_factory=PurchaseReceipt)
    latest_receipt: str = ""
