"""Tests for errors.py -- codes, context and chaining."""

from __future__ import annotations

import pytest

from adoptify.errors import (
    AdoptifyAuthError,
    AdoptifyError,
    AdoptifyLocaleError,
    AdoptifyNetworkError,
    AdoptifyNotFoundError,
    AdoptifyPermissionError,
    AdoptifyRateLimitError,
    AdoptifyServerError,
    AdoptifyValidationError,
    AdoptifyVersionConflictError,
    ErrorCode,
)


@pytest.mark.parametrize(
    ("cls", "code"),
    [
        (AdoptifyValidationError, ErrorCode.VALIDATION_ERROR),
        (AdoptifyAuthError, ErrorCode.AUTH_ERROR),
        (AdoptifyPermissionError, ErrorCode.PERMISSION_ERROR),
        (AdoptifyNotFoundError, ErrorCode.NOT_FOUND),
        (AdoptifyRateLimitError, ErrorCode.RATE_LIMITED),
        (AdoptifyVersionConflictError, ErrorCode.VERSION_CONFLICT),
        (AdoptifyServerError, ErrorCode.SERVER_ERROR),
        (AdoptifyNetworkError, ErrorCode.NETWORK_ERROR),
        (AdoptifyLocaleError, ErrorCode.LOCALE_ERROR),
    ],
)
def test_subclass_codes(cls, code):
    err = cls("something failed")
    assert isinstance(err, AdoptifyError)
    assert err.code == code
    assert err.message == "something failed"
    assert str(err) == "something failed"
    assert err.context == {}


class TestAdoptifyError:
    def test_code_serialises_as_string(self):
        assert ErrorCode.VERSION_CONFLICT == "VERSION_CONFLICT"

    def test_cause_is_chained(self):
        cause = OSError("reset")
        err = AdoptifyNetworkError("network down", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_context_kept(self):
        err = AdoptifyVersionConflictError(
            "stale", context={"record_id": "a", "expected_version": 3},
        )
        assert err.context["expected_version"] == 3

    def test_repr_includes_context(self):
        err = AdoptifyNotFoundError("gone", context={"path": "/entries/x"})
        text = repr(err)
        assert text.startswith("AdoptifyNotFoundError(")
        assert "'/entries/x'" in text

    def test_repr_without_context(self):
        assert "context" not in repr(AdoptifyAuthError("bad token"))
