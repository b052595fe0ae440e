"""AWS Signature Version 4 request signing."""

from .sigv4 import (
    SigV4Signer,
    build_authorization_header,
    build_canonical_request,
    build_string_to_sign,
    canonical_query_string,
    canonical_uri,
    compute_signature,
    credential_scope,
    derive_signing_key,
    format_amz_date,
    uri_encode,
)

__all__ = [
    "SigV4Signer",
    "build_authorization_header",
    "build_canonical_request",
    "build_string_to_sign",
    "canonical_query_string",
    "canonical_uri",
    "compute_signature",
    "credential_scope",
    "derive_signing_key",
    "format_amz_date",
    "uri_encode",
]
