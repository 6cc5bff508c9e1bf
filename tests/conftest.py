"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fakes and fixtures for testing:
- A fake App Store serving canned verifyReceipt bodies per endpoint
- httpx clients wired to the fake through httpx.MockTransport
- Sandbox-aware and production-only AppStoreClient instances
- Sample verifyReceipt response bodies
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import pytest
import structlog

from receipt_verifier.models.appstore import IAPRequest
from receipt_verifier.services.appstore_client import AppStoreClient

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


# ============================================================================
# Fake App Store
# ============================================================================


class FakeAppStore:
    """Serves canned responses per endpoint URL and records every request."""

    def __init__(self) -> None:
        self.handlers: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def reply(
        self,
        url: str,
        body: dict[str, Any] | None = None,
        *,
        content: bytes | None = None,
        status_code: int = 200,
    ) -> None:
        """Answer every request to ``url`` with a JSON body or raw content."""
        if content is None:
            content = json.dumps(body or {}).encode("utf-8")

        def _handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, content=content)

        self.handlers[url] = _handler

    def fail(self, url: str, exc: Exception) -> None:
        """Raise ``exc`` for every request to ``url``."""

        def _handler(request: httpx.Request) -> httpx.Response:
            raise exc

        self.handlers[url] = _handler

    def on(self, url: str, handler: Handler) -> None:
        """Use a custom (sync or async) handler for ``url``."""
        self.handlers[url] = handler

    def handle(self, request: httpx.Request) -> httpx.Response | Awaitable[httpx.Response]:
        self.requests.append(request)
        url = str(request.url)
        if url not in self.handlers:
            raise AssertionError(f"Unexpected request to {url}")
        return self.handlers[url](request)

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]


@pytest.fixture
def appstore() -> FakeAppStore:
    """Fake App Store with no endpoints configured."""
    return FakeAppStore()


@pytest.fixture
def http_client(appstore: FakeAppStore) -> httpx.AsyncClient:
    """httpx client routed to the fake App Store."""
    return httpx.AsyncClient(transport=httpx.MockTransport(appstore.handle))


@pytest.fixture
def sandbox_aware_client(http_client: httpx.AsyncClient) -> AppStoreClient:
    """Client that falls back to the sandbox on status 21007."""
    return AppStoreClient(is_production=False, http_client=http_client)


@pytest.fixture
def production_client(http_client: httpx.AsyncClient) -> AppStoreClient:
    """Production-only client, never calls the sandbox."""
    return AppStoreClient(is_production=True, http_client=http_client)


# ============================================================================
# Requests and Response Bodies
# ============================================================================


@pytest.fixture
def iap_request() -> IAPRequest:
    """Minimal request without a shared secret."""
    return IAPRequest(receipt_data="abc123", exclude_old_transactions=False)


@pytest.fixture
def subscription_request() -> IAPRequest:
    """Subscription request carrying a shared secret."""
    return IAPRequest(
        receipt_data="MIITtgYJKoZIhvcNAQcCoIITpzCCE6MCAQExCzAJBgUrDgMCGgUAMIIDVwYJKoZIhvcNAQcB",
        password="0123456789abcdef0123456789abcdef",
        exclude_old_transactions=True,
    )


@pytest.fixture
def production_body() -> dict[str, Any]:
    """Successful production verifyReceipt response."""
    return {
        "status": 0,
        "environment": "Production",
        "receipt": {
            "receipt_type": "Production",
            "adam_id": 1234567890,
            "app_item_id": 1234567890,
            "bundle_id": "com.example.app",
            "application_version": "42",
            "download_id": 80012345678901,
            "version_external_identifier": 834281937,
            "receipt_creation_date": "2024-03-01 10:00:00 Etc/GMT",
            "receipt_creation_date_ms": "1709287200000",
            "receipt_creation_date_pst": "2024-03-01 02:00:00 America/Los_Angeles",
            "request_date": "2024-03-02 10:00:00 Etc/GMT",
            "request_date_ms": "1709373600000",
            "request_date_pst": "2024-03-02 02:00:00 America/Los_Angeles",
            "original_purchase_date": "2023-01-01 00:00:00 Etc/GMT",
            "original_purchase_date_ms": "1672531200000",
            "original_purchase_date_pst": "2022-12-31 16:00:00 America/Los_Angeles",
            "original_application_version": "1.0",
            "in_app": [
                {
                    "quantity": "1",
                    "product_id": "com.example.app.monthly",
                    "transaction_id": "1000000812345678",
                    "original_transaction_id": "1000000800000000",
                    "web_order_line_item_id": "1000000055555555",
                    "is_trial_period": "false",
                    "purchase_date": "2024-03-01 10:00:00 Etc/GMT",
                    "purchase_date_ms": "1709287200000",
                    "purchase_date_pst": "2024-03-01 02:00:00 America/Los_Angeles",
                    "original_purchase_date": "2023-01-01 00:00:00 Etc/GMT",
                    "original_purchase_date_ms": "1672531200000",
                    "original_purchase_date_pst": "2022-12-31 16:00:00 America/Los_Angeles",
                    "expires_date": "2024-04-01 10:00:00 Etc/GMT",
                    "expires_date_ms": "1711965600000",
                    "expires_date_pst": "2024-04-01 03:00:00 America/Los_Angeles",
                }
            ],
        },
        "latest_receipt_info": [
            {
                "quantity": "1",
                "product_id": "com.example.app.monthly",
                "transaction_id": "1000000812345678",
                "original_transaction_id": "1000000800000000",
                "is_trial_period": "false",
                "expires_date_ms": "1711965600000",
            }
        ],
        "latest_receipt": "MIIUVAYJKoZIhvcNAQcCoIIURTCCFEECAQExCzAJBgUrDgMCGgUA",
        "pending_renewal_info": [
            {
                "auto_renew_product_id": "com.example.app.monthly",
                "original_transaction_id": "1000000800000000",
                "product_id": "com.example.app.monthly",
                "auto_renew_status": "1",
            }
        ],
    }


@pytest.fixture
def sandbox_body() -> dict[str, Any]:
    """Successful sandbox verifyReceipt response."""
    return {
        "status": 0,
        "environment": "Sandbox",
        "receipt": {
            "receipt_type": "ProductionSandbox",
            "bundle_id": "com.example.app",
            "in_app": [],
        },
    }


@pytest.fixture
def sandbox_receipt_body() -> dict[str, Any]:
    """Production's answer to a receipt issued by the sandbox."""
    return {"status": 21007}


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture(autouse=True)
def reset_structlog():
    """Keep structlog configuration and bound context from leaking between tests."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()

