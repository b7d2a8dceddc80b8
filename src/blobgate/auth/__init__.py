from .claims import (
    STORAGE_AUDIENCE,
    ClaimsProvider,
    JWTClaimsProvider,
    StorageClaim,
    extract_storage_claim,
    issue_storage_token,
)

__all__ = [
    "STORAGE_AUDIENCE",
    "ClaimsProvider",
    "JWTClaimsProvider",
    "StorageClaim",
    "extract_storage_claim",
    "issue_storage_token",
]
