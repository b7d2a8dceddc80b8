from .exceptions import BlobGateError
from .gateway import StorageGateway
from .security.signing import sign_url_params, signed_blob_query, verify_url_params

__all__ = [
    "BlobGateError",
    "StorageGateway",
    "sign_url_params",
    "verify_url_params",
    "signed_blob_query",
]
