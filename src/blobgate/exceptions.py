"""Error taxonomy for the storage gateway.

Routers translate these into HTTP statuses:

- ``AuthenticationError``: 400 for claims tokens, 403 for signed URLs
- ``PreconditionError``: 412
- ``NotFoundError``: 404
- ``BackendError``: 500

Nothing here is retried; every error is terminal for its request.
"""

from __future__ import annotations


class BlobGateError(Exception):
    """Base exception for blobgate."""


class AuthenticationError(BlobGateError):
    """The request could not be authorized."""


class SignatureError(AuthenticationError):
    """Signed URL parameters failed verification."""


class EmptyFieldError(SignatureError):
    def __init__(self, index: int):
        super().__init__(f"index {index} is empty")
        self.index = index


class MalformedExpiryError(SignatureError):
    def __init__(self, value: str):
        super().__init__(f"expiry is not an integer: {value!r}")
        self.value = value


class ExpiredError(SignatureError):
    def __init__(self, expiry: int, now: int):
        super().__init__(f"expired at {expiry} (now {now})")
        self.expiry = expiry
        self.now = now


class SignatureMismatchError(SignatureError):
    def __init__(self):
        super().__init__("wrong signature")


class ClaimError(AuthenticationError):
    """A claims token was rejected."""


class InvalidTokenError(ClaimError):
    """Malformed, forged or expired token."""


class WrongAudienceError(ClaimError):
    def __init__(self, audience: object, expected: str):
        super().__init__(f"not a {expected} token (audience={audience!r})")
        self.audience = audience
        self.expected = expected


class PreconditionError(BlobGateError):
    """A write precondition did not hold."""


class GenerationMismatchError(PreconditionError):
    def __init__(self, expected: int, current: int):
        super().__init__(f"wrong generation: expected {expected}, current {current}")
        self.expected = expected
        self.current = current


class NotFoundError(BlobGateError):
    """The addressed object does not exist."""


class BlobNotFoundError(NotFoundError):
    def __init__(self, user_id: str, blob_id: str):
        super().__init__(f"blob not found: {user_id}/{blob_id}")
        self.user_id = user_id
        self.blob_id = blob_id


class DocumentNotFoundError(NotFoundError):
    def __init__(self, user_id: str, document_id: str):
        super().__init__(f"document not found: {user_id}/{document_id}")
        self.user_id = user_id
        self.document_id = document_id


class BackendError(BlobGateError):
    """Any other storage failure."""


class InvalidKeyError(BackendError):
    def __init__(self, key: str):
        super().__init__(f"invalid storage key: {key!r}")
        self.key = key


__all__ = [
    "BlobGateError",
    "AuthenticationError",
    "SignatureError",
    "EmptyFieldError",
    "MalformedExpiryError",
    "ExpiredError",
    "SignatureMismatchError",
    "ClaimError",
    "InvalidTokenError",
    "WrongAudienceError",
    "PreconditionError",
    "GenerationMismatchError",
    "NotFoundError",
    "BlobNotFoundError",
    "DocumentNotFoundError",
    "BackendError",
    "InvalidKeyError",
]
