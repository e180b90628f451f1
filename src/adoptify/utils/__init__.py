from .canonical import canonical_json, clone, is_subsequence, json_equal
from .redact import redact

__all__ = [
    "canonical_json",
    "clone",
    "is_subsequence",
    "json_equal",
    "redact",
]
