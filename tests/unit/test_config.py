"""Tests for config.py -- AdoptifyConfig defaults and validation."""

from __future__ import annotations

import pytest

from adoptify.config import DEFAULT_LOCALE_BASES, AdoptifyConfig


class TestDefaults:
    def test_rate_and_retry_defaults(self):
        config = AdoptifyConfig(token="t", space_id="s")
        assert config.rate_limit_max_per_second == 8
        assert config.rate_limit_window_seconds == 1.0
        assert config.retry_max_attempts == 4
        assert config.retry_base_delay == 0.3
        assert config.gateway_scope == "process"
        assert config.environment_id == "master"
        assert config.diff_timeout_seconds == 0.0

    def test_allowed_bases_are_a_private_copy(self):
        config = AdoptifyConfig(token="t", space_id="s")
        config.allowed_locale_bases.append("xx")
        assert "xx" not in DEFAULT_LOCALE_BASES


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"rate_limit_max_per_second": 0},
            {"rate_limit_window_seconds": 0},
            {"rate_limit_jitter_seconds": -0.1},
            {"retry_max_attempts": -1},
            {"retry_base_delay": -1},
            {"retry_max_delay": -1},
            {"retry_jitter_seconds": -1},
            {"gateway_scope": "thread"},
            {"diff_timeout_seconds": -1},
            {"timeout_seconds": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            AdoptifyConfig(token="t", space_id="s", **overrides)

    def test_insecure_remote_url_rejected(self):
        with pytest.raises(ValueError, match="insecure HTTP"):
            AdoptifyConfig(token="t", space_id="s", base_url="http://api.example.com")

    def test_http_localhost_allowed(self):
        config = AdoptifyConfig(token="t", space_id="s", base_url="http://localhost:8080")
        assert config.base_url == "http://localhost:8080"

    def test_zero_retries_allowed(self):
        assert AdoptifyConfig(token="t", space_id="s", retry_max_attempts=0).retry_max_attempts == 0


class TestRepr:
    def test_token_masked(self):
        text = repr(AdoptifyConfig(token="CFPAT-very-secret-9876", space_id="s"))
        assert "very-secret" not in text
        assert "token='...9876'" in text
        assert "space_id='s'" in text

    def test_short_token_fully_masked(self):
        assert "token='****'" in repr(AdoptifyConfig(token="ab", space_id="s"))
