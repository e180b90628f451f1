"""Package configuration for adoptify.

:class:`AdoptifyConfig` is a plain dataclass that captures every tuneable
knob exposed by the package.  Instances are passed to both
:class:`AdoptifyClient` and :class:`AsyncAdoptifyClient`.

One module-level constant defines the default locale-pairing allowlist:

* :data:`DEFAULT_LOCALE_BASES` -- base languages whose regional variants
  may adopt content from each other when pairing is enforced.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Locale pairing constants
# ---------------------------------------------------------------------------

DEFAULT_LOCALE_BASES: list[str] = [
    "en",
    "de",
    "es",
    "nl",
    "it",
    "ar",
    "fr",
    "zh",
    "jp",
]
"""Base language codes accepted by :func:`adoptify.locales.is_pair_allowed`."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class AdoptifyConfig:
    """Complete configuration for an adoptify client.

    Every parameter has a sensible default so that the only *required*
    values are ``token`` and ``space_id``.

    Parameters
    ----------
    token:
        Content management access token.  **Required.**  Never logged.
    space_id:
        Identifier of the space holding the records.  **Required.**
    environment_id:
        Environment inside the space.  Every record, schema, asset and
        locale path is scoped to it.
    base_url:
        API root URL.  Override for proxy or testing environments.
    rate_limit_max_per_second:
        Ceiling on remote calls per rolling window.  The default stays
        under the remote quota so that several traversals can share it.
    rate_limit_window_seconds:
        Length of the rolling window used by the sliding-log limiter.
    rate_limit_jitter_seconds:
        Upper bound of the random delay added to every limiter wait.
    retry_max_attempts:
        Number of *retries* after the first call when the remote signals
        a rate limit.  Non rate-limit failures are never retried.
    retry_base_delay:
        Base delay (seconds) for exponential backoff
        (``base * 2^attempt``).
    retry_max_delay:
        Upper cap (seconds) on the computed backoff delay.
    retry_jitter_seconds:
        Upper bound of the random delay added to every backoff interval.
    gateway_scope:
        Which call gateway a client uses.

        * ``"process"`` -- one gateway per distinct limiter setting, shared
          by every client in the process (one shared quota).
        * ``"client"`` -- a private gateway for this client only.
    diff_timeout_seconds:
        Time budget handed to the character diff.  ``0`` means no budget,
        which keeps the diff exact and the merge deterministic.
    enforce_locale_pairing:
        Reject adoption between locales of different base languages.
    allowed_locale_bases:
        Base languages accepted when pairing is enforced.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~adoptify.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) request/response pair to *stderr*.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    space_id: str = ""

    environment_id: str = "master"

    base_url: str = "https://api.contentful.com"

    # ── Rate limit ──────────────────────────────────────────────────────
    rate_limit_max_per_second: int = 8

    rate_limit_window_seconds: float = 1.0

    rate_limit_jitter_seconds: float = 0.025

    # ── Retry ───────────────────────────────────────────────────────────
    retry_max_attempts: int = 4

    retry_base_delay: float = 0.3

    retry_max_delay: float = 30.0

    retry_jitter_seconds: float = 0.1

    gateway_scope: Literal["process", "client"] = "process"

    # ── Merge ───────────────────────────────────────────────────────────
    diff_timeout_seconds: float = 0.0

    # ── Locales ─────────────────────────────────────────────────────────
    enforce_locale_pairing: bool = False

    allowed_locale_bases: list[str] = field(
        default_factory=lambda: list(DEFAULT_LOCALE_BASES),
    )

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your access token, or target localhost for testing."
            )

        if self.rate_limit_max_per_second < 1:
            raise ValueError(
                f"rate_limit_max_per_second must be >= 1, got {self.rate_limit_max_per_second}"
            )
        if self.rate_limit_window_seconds <= 0:
            raise ValueError(
                f"rate_limit_window_seconds must be > 0, got {self.rate_limit_window_seconds}"
            )
        if self.rate_limit_jitter_seconds < 0:
            raise ValueError(
                f"rate_limit_jitter_seconds must be >= 0, got {self.rate_limit_jitter_seconds}"
            )
        if self.retry_max_attempts < 0:
            raise ValueError(f"retry_max_attempts must be >= 0, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.retry_jitter_seconds < 0:
            raise ValueError(
                f"retry_jitter_seconds must be >= 0, got {self.retry_jitter_seconds}"
            )
        if self.gateway_scope not in ("process", "client"):
            raise ValueError(
                f"gateway_scope must be 'process' or 'client', got {self.gateway_scope!r}"
            )
        if self.diff_timeout_seconds < 0:
            raise ValueError(
                f"diff_timeout_seconds must be >= 0, got {self.diff_timeout_seconds}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"AdoptifyConfig({', '.join(parts)})"
