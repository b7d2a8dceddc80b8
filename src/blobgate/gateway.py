from __future__ import annotations

from dataclasses import dataclass, field

from blobgate.app.settings import GatewaySettings
from blobgate.auth.claims import ClaimsProvider, JWTClaimsProvider, issue_storage_token
from blobgate.security.signing import signed_blob_query


@dataclass(frozen=True)
class StorageGateway:
    """Process-wide, read-only configuration shared by the transfer routes.

    ``secret`` keys both the signed blob URLs and, through ``claims``, the
    storage tokens. It is fixed at construction.
    """

    secret: bytes = field(repr=False)
    claims: ClaimsProvider = field(repr=False)
    signed_url_ttl_seconds: int = 3600
    token_ttl_seconds: int = 3600
    strict_generation_match: bool = False
    uniform_not_found: bool = True

    @classmethod
    def from_secret(cls, secret: bytes | str, **kwargs) -> "StorageGateway":
        key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        return cls(secret=key, claims=JWTClaimsProvider(key), **kwargs)

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "StorageGateway":
        return cls.from_secret(
            settings.jwt_secret.get_secret_value(),
            signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
            token_ttl_seconds=settings.token_ttl_seconds,
            strict_generation_match=settings.strict_generation_match,
            uniform_not_found=settings.uniform_not_found,
        )

    def blob_query(self, uid: str, blob_id: str, *, now: int | None = None) -> dict[str, str]:
        """Signed query parameters for /blobstorage, valid for ``signed_url_ttl_seconds``."""
        return signed_blob_query(uid, blob_id, self.secret, ttl_seconds=self.signed_url_ttl_seconds, now=now)

    def issue_token(self, user_id: str, document_id: str, *, now: int | None = None) -> str:
        return issue_storage_token(user_id, document_id, self.claims, ttl_seconds=self.token_ttl_seconds, now=now)


__all__ = ["StorageGateway"]
