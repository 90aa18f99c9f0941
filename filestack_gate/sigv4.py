# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""AWS SigV4 (HMAC-SHA256) signing primitives.

Used by ``filestack_gate.storage`` to build query-string (presigned)
requests against the S3-compatible store that holds generated assets.

No boto3/botocore dependency; uses only stdlib.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable, Mapping


ALGORITHM = "AWS4-HMAC-SHA256"

#: Payload hash used for presigned S3 requests.
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

_AWS_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)


# ---------------------------------------------------------------------------
# URI encoding (AWS-specific RFC 3986 subset)
# ---------------------------------------------------------------------------


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """URI-encode a value using AWS's specific rules.

    - Unreserved characters are not encoded: A-Z, a-z, 0-9, -, _, ., ~
    - All other characters are percent-encoded as %XX (uppercase hex) of
      their UTF-8 bytes
    - Forward slashes (/) are optionally preserved

    Args:
        value: String to encode.
        encode_slash: If True, encode '/'; if False, preserve '/'.

    Returns:
        URI-encoded string.
    """
    result: list[str] = []
    for ch in value:
        if ch in _AWS_UNRESERVED:
            result.append(ch)
        elif ch == "/" and not encode_slash:
            result.append("/")
        else:
            result.extend(f"%{b:02X}" for b in ch.encode("utf-8"))
    return "".join(result)


# ---------------------------------------------------------------------------
# Canonical request construction
# ---------------------------------------------------------------------------


def canonical_uri(path: str) -> str:
    """Build the S3 canonical URI from an object path.

    *path* is the unencoded object path.  S3 signs it URI-encoded once,
    with slashes kept and no normalization, so double slashes and
    ``.``/``..`` segments are significant and a literal ``%`` is encoded
    as ``%25``.

    Args:
        path: Unencoded object path.

    Returns:
        URI-encoded canonical path.
    """
    if not path:
        return "/"
    return uri_encode(path, encode_slash=False)


def canonical_query_string(params: Iterable[tuple[str, str]]) -> str:
    """Build canonical query string.

    Args:
        params: Decoded query parameters as (name, value) pairs.

    Returns:
        Canonical query string (encoded, sorted by name then value).
    """
    encoded = sorted((uri_encode(k), uri_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def canonical_headers_string(
    headers: Mapping[str, str], signed_headers_list: list[str]
) -> str:
    """Build canonical headers string.

    Args:
        headers: Request headers (name -> value).
        signed_headers_list: List of signed header names (lowercase).

    Returns:
        Canonical headers string (each line: "name:value" + newline).
    """
    lower_headers = {name.lower(): value for name, value in headers.items()}

    lines: list[str] = []
    for name in sorted(signed_headers_list):
        value = lower_headers.get(name, "")
        # Trim leading/trailing whitespace, collapse sequential spaces
        trimmed = " ".join(value.split())
        lines.append(f"{name}:{trimmed}\n")
    return "".join(lines)


def build_canonical_request(
    method: str,
    path: str,
    params: Iterable[tuple[str, str]],
    headers: Mapping[str, str],
    signed_headers: str,
    payload_hash: str,
) -> str:
    """Build the canonical request string.

    Args:
        method: HTTP method.
        path: Unencoded object path.
        params: Query parameters, excluding ``X-Amz-Signature``.
        headers: Request headers.
        signed_headers: Semicolon-separated signed header names.
        payload_hash: Payload hash (``UNSIGNED-PAYLOAD`` for presigning).

    Returns:
        Canonical request string.
    """
    return "\n".join(
        [
            method,
            canonical_uri(path),
            canonical_query_string(params),
            canonical_headers_string(headers, signed_headers.split(";")),
            signed_headers,
            payload_hash,
        ]
    )


# ---------------------------------------------------------------------------
# SigV4 signing
# ---------------------------------------------------------------------------


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    """HMAC-SHA256 helper."""
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def credential_scope(date: str, region: str, service: str) -> str:
    """Return ``date/region/service/aws4_request``."""
    return f"{date}/{region}/{service}/aws4_request"


def derive_signing_key(
    secret_key: str, date: str, region: str, service: str
) -> bytes:
    """Derive the SigV4 signing key.

    Args:
        secret_key: Secret access key.
        date: Date string (YYYYMMDD).
        region: Region name.
        service: Service name.

    Returns:
        Derived signing key bytes.
    """
    k_date = _hmac_sha256(("AWS4" + secret_key).encode("utf-8"), date)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, "aws4_request")


def build_string_to_sign(
    timestamp: str, scope: str, canonical_request: str
) -> str:
    """Build the SigV4 string to sign.

    Args:
        timestamp: ISO8601 basic timestamp (``YYYYMMDDTHHMMSSZ``).
        scope: Credential scope.
        canonical_request: The canonical request string.

    Returns:
        String to sign.
    """
    return "\n".join(
        [
            ALGORITHM,
            timestamp,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )


def sign_string(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the hex-encoded SigV4 signature."""
    return hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()
