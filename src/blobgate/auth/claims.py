from __future__ import annotations

import logging
import time
from typing import Any, Protocol, Sequence

import jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from blobgate.exceptions import InvalidTokenError, WrongAudienceError

logger = logging.getLogger(__name__)

STORAGE_AUDIENCE = "storage"


class StorageClaim(BaseModel):
    """Identity asserted by a storage token."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="UserID", min_length=1)
    document_id: str = Field(alias="DocumentID", min_length=1)
    audience: Any = Field(default=None, alias="aud")
    expires_at: int | None = Field(default=None, alias="exp")


class ClaimsProvider(Protocol):
    """Verifies a token and returns its payload, or raises."""

    def decode(self, token: str) -> dict[str, Any]: ...


class JWTClaimsProvider:
    """HMAC JWT verification backed by PyJWT.

    Signature and expiry are checked here; the audience is left to
    ``extract_storage_claim`` so a wrong audience can be told apart from a
    forged token.
    """

    def __init__(self, secret: bytes, algorithms: Sequence[str] = ("HS256",)):
        self._secret = secret
        self._algorithms = list(algorithms)

    def decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=self._algorithms,
                options={"verify_aud": False},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

    def encode(self, payload: dict[str, Any]) -> str:
        return jwt.encode(payload, self._secret, algorithm=self._algorithms[0])


def extract_storage_claim(token: str, provider: ClaimsProvider) -> StorageClaim:
    payload = provider.decode(token)
    audience = payload.get("aud")
    if audience != STORAGE_AUDIENCE:
        raise WrongAudienceError(audience, STORAGE_AUDIENCE)
    try:
        return StorageClaim.model_validate(payload)
    except ValidationError as exc:
        raise InvalidTokenError(f"malformed storage claim: {exc.error_count()} error(s)") from exc


def issue_storage_token(
    user_id: str,
    document_id: str,
    provider: JWTClaimsProvider,
    *,
    ttl_seconds: int = 3600,
    now: int | None = None,
) -> str:
    """Mint a token accepted by the ``/storage/{token}`` routes."""
    issued = int(time.time()) if now is None else now
    payload = {
        "UserID": user_id,
        "DocumentID": document_id,
        "aud": STORAGE_AUDIENCE,
        "iat": issued,
        "exp": issued + ttl_seconds,
    }
    logger.debug("Issuing storage token for user=%s document=%s", user_id, document_id)
    return provider.encode(payload)


__all__ = [
    "STORAGE_AUDIENCE",
    "StorageClaim",
    "ClaimsProvider",
    "JWTClaimsProvider",
    "extract_storage_claim",
    "issue_storage_token",
]
