"""HMAC-SHA256 signing of URL parameters.

Parts are concatenated in order with no delimiter, so field order is part of
the contract. Empty parts are refused because they make distinct parameter
sets collide into the same message.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import time
from typing import Sequence

from blobgate.exceptions import (
    EmptyFieldError,
    ExpiredError,
    MalformedExpiryError,
    SignatureMismatchError,
)

_INT_RE = re.compile(r"[+-]?[0-9]+")


def sign_url_params(parts: Sequence[str], key: bytes) -> str:
    mac = hmac.new(key, digestmod=hashlib.sha256)
    for i, part in enumerate(parts):
        if part == "":
            raise EmptyFieldError(i)
        mac.update(part.encode("utf-8"))
    return mac.hexdigest()


def _parse_expiry(exp: str) -> int:
    if not _INT_RE.fullmatch(exp or ""):
        raise MalformedExpiryError(exp)
    return int(exp)


def verify_url_params(
    parts: Sequence[str],
    exp: str,
    signature: str,
    key: bytes,
    *,
    now: int | None = None,
) -> None:
    """Raise a ``SignatureError`` unless ``signature`` is valid and unexpired.

    Checks run in a fixed order: empty fields, expiry format, expiry, then the
    signature itself. The comparison is constant-time.
    """
    expected = sign_url_params(parts, key)
    expiry = _parse_expiry(exp)
    current = int(time.time()) if now is None else now
    if expiry < current:
        raise ExpiredError(expiry, current)
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        raise SignatureMismatchError()


def signed_blob_query(
    uid: str,
    blob_id: str,
    key: bytes,
    *,
    ttl_seconds: int,
    now: int | None = None,
) -> dict[str, str]:
    """Query parameters for a blob URL valid for ``ttl_seconds``."""
    current = int(time.time()) if now is None else now
    exp = str(current + ttl_seconds)
    return {
        "uid": uid,
        "blobid": blob_id,
        "exp": exp,
        "signature": sign_url_params([uid, blob_id, exp], key),
    }


__all__ = ["sign_url_params", "verify_url_params", "signed_blob_query"]
