"""AWS Signature Version 4 for S3-compatible object stores.

The canonical request is the newline-joined sequence of method, canonical
URI, canonical query string, canonical headers block, signed header list
and payload hash. Its SHA-256 goes into the string to sign, which is then
signed with a key derived through four chained HMACs over the date stamp,
region, service and terminator. Every function here is pure: identical
inputs produce identical output.
"""

import hashlib
import hmac
import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from s3_multipart.const import (
    AMZ_DATE_FORMAT,
    SIGNING_ALGORITHM,
    SIGNING_SERVICE,
    SIGNING_TERMINATOR,
)
from s3_multipart.models import Credentials

logger = logging.getLogger(__name__)

_AWS_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)

_AMZ_DATE_RE = re.compile(r"^\d{8}T\d{6}Z$")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """URI-encode a value using AWS's rules.

    Unreserved characters (A-Z, a-z, 0-9, ``-_.~``) are kept, everything
    else is UTF-8 encoded and written as ``%XX`` with uppercase hex.

    Args:
        value: String to encode.
        encode_slash: If False, forward slashes are kept as-is.

    Returns:
        The encoded string.
    """
    result: list[str] = []
    for ch in value:
        if ch in _AWS_UNRESERVED or (ch == "/" and not encode_slash):
            result.append(ch)
        else:
            result.extend(f"%{byte:02X}" for byte in ch.encode("utf-8"))
    return "".join(result)


def format_amz_date(moment: datetime) -> str:
    """Format a moment as the fixed-width ``YYYYMMDDTHHMMSSZ`` UTC timestamp."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(AMZ_DATE_FORMAT)


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


def canonical_uri(bucket: str, object_key: str) -> str:
    """Build the path-style canonical URI ``/{bucket}/{key}``.

    Leading slashes on the key are dropped so exactly one slash separates
    bucket and key. Each key segment is encoded once; slashes are kept.
    """
    clean_key = object_key.lstrip("/")
    return f"/{uri_encode(bucket)}/{uri_encode(clean_key, encode_slash=False)}"


def canonical_query_string(
    params: Mapping[str, str] | Iterable[tuple[str, str]],
) -> str:
    """Build the canonical query string.

    Names and values are encoded, then sorted by encoded name and value.
    A parameter with no value is written ``name=``.
    """
    items = params.items() if isinstance(params, Mapping) else params
    encoded = sorted((uri_encode(k), uri_encode(v)) for k, v in items)
    return "&".join(f"{k}={v}" for k, v in encoded)


def _normalize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Lower-case names, trim values and fold repeated names with commas."""
    normalized: dict[str, list[str]] = {}
    for name, value in headers.items():
        normalized.setdefault(name.strip().lower(), []).append(" ".join(value.split()))
    return {name: ",".join(values) for name, values in normalized.items()}


def signed_header_names(headers: Mapping[str, str]) -> str:
    """Return the ``;``-separated, sorted, lower-cased header names."""
    return ";".join(sorted(_normalize_headers(headers)))


def canonical_headers_block(headers: Mapping[str, str]) -> str:
    """Return ``name:value`` lines sorted by name, each ending in a newline."""
    normalized = _normalize_headers(headers)
    return "".join(f"{name}:{normalized[name]}\n" for name in sorted(normalized))


def build_canonical_request(
    method: str,
    uri: str,
    query: str,
    headers: Mapping[str, str],
    payload_hash: str,
) -> str:
    """Build the canonical request string.

    Args:
        method: HTTP method.
        uri: Canonical URI, already encoded.
        query: Canonical query string, already encoded and sorted.
        headers: Headers to sign (name -> value).
        payload_hash: Hex SHA-256 of the request body.

    Returns:
        Canonical request string.
    """
    return "\n".join(
        [
            method.upper(),
            uri,
            query,
            canonical_headers_block(headers),
            signed_header_names(headers),
            payload_hash,
        ]
    )


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def credential_scope(
    date_stamp: str, region: str, service: str = SIGNING_SERVICE
) -> str:
    """Return ``date/region/service/aws4_request``."""
    return f"{date_stamp}/{region}/{service}/{SIGNING_TERMINATOR}"


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    """Build the SigV4 string to sign.

    Args:
        amz_date: ``YYYYMMDDTHHMMSSZ`` timestamp sent as ``x-amz-date``.
        scope: Credential scope.
        canonical_request: The canonical request string.

    Returns:
        String to sign.
    """
    return "\n".join(
        [
            SIGNING_ALGORITHM,
            amz_date,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_key: str, date_stamp: str, region: str, service: str = SIGNING_SERVICE
) -> bytes:
    """Derive the SigV4 signing key.

    Args:
        secret_key: Secret access key.
        date_stamp: Date string (YYYYMMDD).
        region: Bucket region.
        service: Service name.

    Returns:
        Derived signing key bytes.

    Raises:
        ValueError: If any input is empty.
    """
    if not secret_key or not date_stamp or not region or not service:
        raise ValueError("secret key, date stamp, region and service are required")
    k_date = _hmac_sha256(f"AWS4{secret_key}".encode(), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, SIGNING_TERMINATOR)


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Return the hex HMAC-SHA256 of the string to sign."""
    return hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def build_authorization_header(
    access_key_id: str, scope: str, signed_headers: str, signature: str
) -> str:
    """Format the ``Authorization`` header value."""
    return (
        f"{SIGNING_ALGORITHM} Credential={access_key_id}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


class SigV4Signer:
    """Sign requests with one set of credentials.

    The derived signing key depends only on the date stamp for a given
    signer, so the key for the current date is kept and reused until the
    date changes.
    """

    def __init__(
        self,
        credentials: Credentials,
        service: str = SIGNING_SERVICE,
        cache_signing_key: bool = True,
    ) -> None:
        """Initialise the signer.

        Args:
            credentials: Credentials to sign with.
            service: Service name in the credential scope.
            cache_signing_key: Reuse the derived key for requests on the same date.
        """
        self._credentials = credentials
        self._service = service
        self._cache_signing_key = cache_signing_key
        self._cached_key: tuple[str, bytes] | None = None

    def signing_key(self, date_stamp: str) -> bytes:
        """Return the signing key for a date stamp."""
        if self._cache_signing_key and self._cached_key is not None:
            cached_date, cached_key = self._cached_key
            if cached_date == date_stamp:
                return cached_key

        key = derive_signing_key(
            self._credentials.secret_access_key.get_secret_value(),
            date_stamp,
            self._credentials.region,
            self._service,
        )
        if self._cache_signing_key:
            self._cached_key = (date_stamp, key)
        return key

    def authorization(
        self,
        method: str,
        uri: str,
        query: str,
        headers: Mapping[str, str],
        payload_hash: str,
        amz_date: str,
    ) -> str:
        """Compute the ``Authorization`` header value for one request.

        Args:
            method: HTTP method.
            uri: Canonical URI.
            query: Canonical query string.
            headers: Every header to sign, including ``x-amz-date``.
            payload_hash: Hex SHA-256 of the body.
            amz_date: ``YYYYMMDDTHHMMSSZ`` timestamp.

        Returns:
            Authorization header value.

        Raises:
            ValueError: If the timestamp is not in ``YYYYMMDDTHHMMSSZ`` form.
        """
        if not _AMZ_DATE_RE.match(amz_date):
            raise ValueError(f"Invalid x-amz-date timestamp: {amz_date!r}")

        date_stamp = amz_date[:8]
        scope = credential_scope(date_stamp, self._credentials.region, self._service)
        canonical_request = build_canonical_request(
            method, uri, query, headers, payload_hash
        )
        string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
        signature = compute_signature(self.signing_key(date_stamp), string_to_sign)
        logger.debug("Signed %s %s?%s with scope %s", method, uri, query, scope)
        return build_authorization_header(
            self._credentials.access_key_id,
            scope,
            signed_header_names(headers),
            signature,
        )
