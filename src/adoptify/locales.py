"""Locale discovery and pairing rules."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from adoptify.config import DEFAULT_LOCALE_BASES
from adoptify.errors import AdoptifyLocaleError
from adoptify.models import Locale


def base_language(code: str) -> str:
    """Return the base language of a locale code (``"en-US"`` -> ``"en"``)."""
    return code.split("-", 1)[0].lower()


def is_pair_allowed(
    source: str,
    target: str,
    allowed_bases: Iterable[str] = DEFAULT_LOCALE_BASES,
) -> bool:
    """Return ``True`` if content may be adopted from *source* into *target*.

    Both codes must share a base language from *allowed_bases*, and the
    target must be the source itself or a regional variant of the base.

    Examples
    --------
    >>> is_pair_allowed("en", "en-GB")
    True
    >>> is_pair_allowed("en-US", "de-DE")
    False
    """
    if not source or not target:
        return False
    base = base_language(source)
    if base not in {b.lower() for b in allowed_bases}:
        return False
    if base_language(target) != base:
        return False
    return target == source or target.lower().startswith(f"{base}-")


def find_default_locale(locales: Sequence[Locale]) -> Locale:
    """Return the locale flagged as default.

    Raises
    ------
    AdoptifyLocaleError
        When no locale carries the default flag.
    """
    for locale in locales:
        if locale.default:
            return locale
    raise AdoptifyLocaleError(
        message="No default locale configured in this environment",
        context={"locales": [locale.code for locale in locales]},
    )


def check_pair(
    source: str,
    target: str,
    allowed_bases: Iterable[str] = DEFAULT_LOCALE_BASES,
) -> None:
    """Raise :class:`AdoptifyLocaleError` unless the pair is allowed."""
    if source == target:
        raise AdoptifyLocaleError(
            message=f"Source and target locale are both {source!r}",
            context={"source_locale": source, "target_locale": target},
        )
    if not is_pair_allowed(source, target, allowed_bases):
        raise AdoptifyLocaleError(
            message=f"Adopting {source!r} into {target!r} is not allowed",
            context={"source_locale": source, "target_locale": target},
        )
