"""
Hypothesis Property-Based Tests for status interpretation and requests.

Uses Hypothesis to generate status codes and request fields and verify:
- handle_error is total and classifies every integer consistently
- Request serialization keeps Apple's wire keys for any input
"""

import json

from hypothesis import given
from hypothesis import strategies as st

from receipt_verifier.models.appstore import IAPRequest
from receipt_verifier.services.status import (
    INTERNAL_DATA_ACCESS_MESSAGE,
    STATUS_MESSAGES,
    UNKNOWN_ERROR_MESSAGE,
    handle_error,
)

# ============================================================================
# Hypothesis Strategies
# ============================================================================

documented_codes = st.sampled_from(sorted(STATUS_MESSAGES))

internal_codes = st.integers(min_value=21100, max_value=21199)

unknown_codes = st.integers(min_value=-(2**31), max_value=2**31).filter(
    lambda c: c != 0 and c not in STATUS_MESSAGES and not 21100 <= c <= 21199
)

receipt_data = st.text(min_size=1, max_size=500)

passwords = st.one_of(st.none(), st.text(max_size=64))


class TestHandleErrorProperties:
    """Property tests for handle_error."""

    @given(status=documented_codes)
    def test_documented_codes_use_table(self, status):
        error = handle_error(status)
        assert error is not None
        assert error.message == STATUS_MESSAGES[status]

    @given(status=internal_codes)
    def test_internal_range(self, status):
        error = handle_error(status)
        assert error is not None
        assert error.message == INTERNAL_DATA_ACCESS_MESSAGE

    @given(status=unknown_codes)
    def test_everything_else_is_unknown(self, status):
        error = handle_error(status)
        assert error is not None
        assert error.message == UNKNOWN_ERROR_MESSAGE

    @given(status=st.integers())
    def test_total_and_deterministic(self, status):
        """Every integer maps to the same answer each time."""
        first = handle_error(status)
        second = handle_error(status)
        assert (first is None) == (status == 0)
        if first is not None and second is not None:
            assert first.message == second.message
            assert first.status == status


class TestIAPRequestProperties:
    """Property tests for request serialization."""

    @given(data=receipt_data, password=passwords, exclude=st.booleans())
    def test_wire_keys(self, data, password, exclude):
        """Serialized requests always use Apple's keys; password only when non-empty."""
        request = IAPRequest(
            receipt_data=data, password=password, exclude_old_transactions=exclude
        )

        body = json.loads(request.to_json())

        assert body["receipt-data"] == data
        assert body["exclude-old-transactions"] is exclude
        if password:
            assert body["password"] == password
        else:
            assert "password" not in body
        assert set(body) <= {"receipt-data", "password", "exclude-old-transactions"}
