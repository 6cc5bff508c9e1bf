"""
App Store verifyReceipt client.

Sends receipts to Apple's production endpoint and, for clients that are not
production-only, transparently resends receipts issued by the sandbox
(status 21007) to the sandbox endpoint.
https://developer.apple.com/documentation/appstorereceipts/verifyreceipt
"""

import asyncio
from functools import lru_cache
from typing import Any, TypeVar, overload

import httpx
from pydantic import TypeAdapter, ValidationError
from structlog import get_logger

from receipt_verifier.config import (
    DEFAULT_HTTP_TIMEOUT,
    PRODUCTION_URL,
    SANDBOX_URL,
    Settings,
    get_settings,
)
from receipt_verifier.exceptions import ResponseDecodeError
from receipt_verifier.models.appstore import IAPRequest, IAPResponse, StatusCode, StatusResponse
from receipt_verifier.observability.metrics import metrics, track_verification
from receipt_verifier.observability.tracing import add_span_attributes, get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)

T = TypeVar("T")

CONTENT_TYPE = "application/json; charset=utf-8"


@lru_cache(maxsize=64)
def _type_adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


class AppStoreClient:
    """
    verifyReceipt API client.

    The endpoint URLs are plain attributes and may be overridden after
    construction. A client holds no per-call state, so one instance can serve
    many concurrent verify() calls.
    """

    def __init__(
        self,
        is_production: bool,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        """
        Initialize the client.

        Args:
            is_production: When True, never fall back to the sandbox endpoint
            http_client: Transport to use (custom timeouts, proxies, tests).
                Built lazily with ``timeout`` when not supplied.
            timeout: Timeout in seconds for the default transport
        """
        self.production_url = PRODUCTION_URL
        self.sandbox_url = SANDBOX_URL
        self.is_production = is_production
        self.timeout = timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "AppStoreClient":
        """Build a client from APPSTORE_* settings."""
        settings = settings or get_settings()
        client = cls(
            settings.is_production,
            http_client=http_client,
            timeout=settings.http_timeout,
        )
        client.production_url = settings.production_url
        client.sandbox_url = settings.sandbox_url
        return client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "AppStoreClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    @overload
    async def verify(
        self, request: IAPRequest, *, timeout: float | None = None
    ) -> IAPResponse: ...

    @overload
    async def verify(
        self, request: IAPRequest, result_type: type[T], *, timeout: float | None = None
    ) -> T: ...

    async def verify(
        self,
        request: IAPRequest,
        result_type: Any = IAPResponse,
        *,
        timeout: float | None = None,
    ) -> Any:
        """
        Verify a receipt and decode Apple's response.

        Args:
            request: The verifyReceipt request, sent unchanged to each endpoint
            result_type: Anything pydantic can validate JSON into (a model,
                a dataclass, a TypedDict, ``dict[str, Any]``)
            timeout: Deadline in seconds covering the production call and the
                sandbox fallback together. None means no deadline beyond the
                transport's own timeout.

        Returns:
            The response decoded into ``result_type``. A non-zero status is
            not an error here; pass it to handle_error() to interpret it.

        Raises:
            ResponseDecodeError: Body is not JSON or doesn't fit result_type
            httpx.HTTPError: Transport failure, passed through unchanged
            TimeoutError: ``timeout`` expired
        """
        logger.info(
            "appstore_verify_started",
            is_production=self.is_production,
            exclude_old_transactions=request.exclude_old_transactions,
            has_password=request.password is not None,
        )

        with (
            tracer.start_as_current_span("appstore.verify_receipt") as span,
            track_verification() as tracker,
        ):
            async with asyncio.timeout(timeout):
                body = await self._dispatch(self.production_url, request, "production")
                status = self._read_status(body)
                fallback = (
                    not self.is_production and status == StatusCode.SANDBOX_RECEIPT_IN_PRODUCTION
                )
                if fallback:
                    logger.info("appstore_sandbox_fallback", production_status=status)
                    metrics.record_sandbox_fallback()
                    body = await self._dispatch(self.sandbox_url, request, "sandbox")

            result = self._decode(body, result_type)

            environment = "sandbox" if fallback else "production"
            tracker.set_outcome(environment)
            add_span_attributes(
                span,
                environment=environment,
                production_status=status,
                sandbox_fallback=fallback,
            )

        logger.info(
            "appstore_verify_completed",
            environment=environment,
            production_status=status,
            sandbox_fallback=fallback,
        )
        return result

    async def _dispatch(self, url: str, request: IAPRequest, environment: str) -> bytes:
        """POST the request body to one endpoint and return the raw response body."""
        try:
            response = await self.http_client.post(
                url,
                content=request.to_json(),
                headers={"Content-Type": CONTENT_TYPE},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "appstore_transport_failed",
                environment=environment,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            metrics.record_error(type(exc).__name__, f"dispatch_{environment}")
            raise

        metrics.record_http_request(environment, response.status_code)
        if response.is_error:
            # verifyReceipt reports failures through the body's status field;
            # the body is still handed to the decoder.
            logger.warning(
                "appstore_http_error_status",
                environment=environment,
                http_status=response.status_code,
            )
        return response.content

    def _read_status(self, body: bytes) -> int:
        """Read only the status field, without decoding the rest of the body."""
        try:
            return StatusResponse.model_validate_json(body).status
        except ValidationError as exc:
            logger.warning(
                "appstore_response_decode_failed",
                target="StatusResponse",
                error_count=exc.error_count(),
            )
            raise ResponseDecodeError(str(exc), body=body) from exc

    def _decode(self, body: bytes, result_type: Any) -> Any:
        """Decode a response body into the caller's result type."""
        try:
            return _type_adapter(result_type).validate_json(body)
        except ValidationError as exc:
            logger.warning(
                "appstore_response_decode_failed",
                target=getattr(result_type, "__name__", str(result_type)),
                error_count=exc.error_count(),
            )
            raise ResponseDecodeError(str(exc), body=body) from exc
