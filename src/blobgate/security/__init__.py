from .signing import sign_url_params, signed_blob_query, verify_url_params

__all__ = ["sign_url_params", "verify_url_params", "signed_blob_query"]
