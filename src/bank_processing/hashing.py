"""
Hashing utilities for bank-processing.

Call-log keys are sha256 over canonical JSON so that logs recorded by earlier
runs stay addressable; blake3 is the default for everything else.
"""

from __future__ import annotations

import hashlib
from typing import Any, Literal

from blake3 import blake3

from .serialization import stable_json_dumps

HashAlgorithm = Literal["blake3", "sha256"]

DEFAULT_CACHE_SCHEMA = "v1"


def compute_hash(
    data: str | bytes,
    algorithm: HashAlgorithm = "blake3",
    truncate: int | None = None,
) -> str:
    """
    Compute a hash using the specified algorithm.

    Args:
        data: Input data to hash (string or bytes)
        algorithm: "blake3" (default) or "sha256"
        truncate: Truncate output to N characters (for shorter keys)

    Returns:
        Hexadecimal hash string
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    if algorithm == "blake3":
        result = blake3(data).hexdigest()
    elif algorithm == "sha256":
        result = hashlib.sha256(data).hexdigest()
    else:
        raise ValueError(f"Unknown algorithm: {algorithm}")

    return result[:truncate] if truncate else result


def content_hash(obj: Any, algorithm: HashAlgorithm = "blake3") -> str:
    """
    Deterministic hash of any JSON-serializable object.

    Dict key order never changes the result.
    """
    return compute_hash(stable_json_dumps(obj), algorithm)


def identity_call_key(
    provider: str,
    operation: str,
    identity: dict[str, Any],
    cache_schema: str | None = None,
) -> str:
    """Key of a call whose plugin declared a cache identity."""
    payload = {
        "provider": provider,
        "operation": operation,
        "cacheSchema": cache_schema or DEFAULT_CACHE_SCHEMA,
        "identity": identity,
    }
    return content_hash(payload, "sha256")


def feature_call_key(
    feature_id: str,
    operation: str,
    options: dict[str, Any],
    input: str,
) -> str:
    """Key of a call without cache identity: bound to feature, options and input."""
    payload = {
        "featureId": feature_id,
        "operation": operation,
        "options": options,
        "input": input,
    }
    return content_hash(payload, "sha256")


__all__ = [
    "HashAlgorithm",
    "DEFAULT_CACHE_SCHEMA",
    "compute_hash",
    "content_hash",
    "identity_call_key",
    "feature_call_key",
]
