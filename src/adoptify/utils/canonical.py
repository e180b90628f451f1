"""Canonical JSON helpers.

Field values coming from the management API are plain JSON.  Equality
between two values must follow JSON semantics (``true`` is not ``1``,
key order is irrelevant), which Python's ``==`` does not give for
``bool``/``int`` mixes.  :func:`json_equal` therefore compares the
canonical serialisation.
"""

from __future__ import annotations

import copy
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialise *value* with sorted keys and no insignificant whitespace."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def json_equal(a: Any, b: Any) -> bool:
    """Deep equality under JSON semantics.

    Examples
    --------
    >>> json_equal({"a": 1, "b": [True]}, {"b": [True], "a": 1})
    True
    >>> json_equal(1, True)
    False
    """
    return canonical_json(a) == canonical_json(b)


def clone(value: Any) -> Any:
    """Deep copy a JSON value so the caller's structure is never shared."""
    return copy.deepcopy(value)


def is_subsequence(needle: str, haystack: str) -> bool:
    """Return ``True`` if every character of *needle* occurs in *haystack*
    in the same order (not necessarily contiguously).

    Examples
    --------
    >>> is_subsequence("ace", "abcde")
    True
    >>> is_subsequence("aec", "abcde")
    False
    """
    it = iter(haystack)
    return all(ch in it for ch in needle)
