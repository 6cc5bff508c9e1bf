"""
receipt-verifier command line.

Usage:
    # Verify a receipt (production first, sandbox fallback on 21007)
    receipt-verifier verify --receipt-file receipt.b64

    # Production-only client with a shared secret
    receipt-verifier verify --receipt "MIIT..." --password s3cret --production

    # Explain a status code
    receipt-verifier status 21007
"""

import argparse
import asyncio
import sys
from pathlib import Path

import httpx
from pydantic import ValidationError

from receipt_verifier.config import get_settings
from receipt_verifier.exceptions import ResponseDecodeError
from receipt_verifier.models.appstore import IAPRequest
from receipt_verifier.observability.logging import setup_logging
from receipt_verifier.observability.tracing import setup_tracing
from receipt_verifier.services.appstore_client import AppStoreClient
from receipt_verifier.services.status import handle_error

EXIT_OK = 0
EXIT_STATUS_ERROR = 1
EXIT_FAILURE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="receipt-verifier",
        description="Verify App Store receipts with Apple's verifyReceipt endpoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  receipt-verifier verify --receipt-file receipt.b64
  receipt-verifier verify --receipt "MIIT..." --production --timeout 5
  receipt-verifier status 21002
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify = subparsers.add_parser("verify", help="Verify one receipt")
    source = verify.add_mutually_exclusive_group(required=True)
    source.add_argument("--receipt", help="Base64 receipt data")
    source.add_argument("--receipt-file", type=Path, help="File containing base64 receipt data")
    verify.add_argument(
        "--password", help="App-specific shared secret (default: APPSTORE_SHARED_SECRET)"
    )
    verify.add_argument(
        "--exclude-old-transactions",
        action="store_true",
        help="Only return the latest renewal transaction for each subscription",
    )
    verify.add_argument(
        "--production",
        action="store_true",
        help="Production-only client: never fall back to the sandbox",
    )
    verify.add_argument("--timeout", type=float, help="Overall deadline in seconds")
    verify.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    status = subparsers.add_parser("status", help="Explain a verifyReceipt status code")
    status.add_argument("code", type=int, help="Status code from a verifyReceipt response")

    return parser


def describe_status(code: int) -> str:
    error = handle_error(code)
    return "OK" if error is None else error.message


async def run_verify(args: argparse.Namespace) -> int:
    """Run one verification and print the decoded response."""
    settings = get_settings()

    try:
        if args.receipt_file is not None:
            receipt_data = args.receipt_file.read_text(encoding="utf-8").strip()
        else:
            receipt_data = args.receipt.strip()

        request = IAPRequest(
            receipt_data=receipt_data,
            password=args.password or settings.shared_secret,
            exclude_old_transactions=args.exclude_old_transactions,
        )
    except OSError as exc:
        print(f"Cannot read receipt: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except ValidationError as exc:
        print(f"Invalid request: {exc.errors()[0]['msg']}", file=sys.stderr)
        return EXIT_FAILURE

    async with AppStoreClient.from_settings(settings) as client:
        if args.production:
            client.is_production = True
        try:
            response = await client.verify(request, timeout=args.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError, ResponseDecodeError) as exc:
            print(f"Verification failed: {type(exc).__name__}: {exc}", file=sys.stderr)
            return EXIT_FAILURE

    print(response.model_dump_json(by_alias=True, indent=2))
    print(f"status {response.status}: {describe_status(response.status)}", file=sys.stderr)
    return EXIT_OK if response.is_valid() else EXIT_STATUS_ERROR


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "status":
        print(describe_status(args.code))
        return EXIT_OK if args.code == 0 else EXIT_STATUS_ERROR

    # Logs go to stderr so stdout stays valid JSON
    settings = get_settings()
    log_level = "DEBUG" if args.verbose else "WARNING"
    setup_logging(settings.model_copy(update={"log_level": log_level}), stream=sys.stderr)
    setup_tracing(settings)
    return asyncio.run(run_verify(args))


if __name__ == "__main__":
    sys.exit(main())
