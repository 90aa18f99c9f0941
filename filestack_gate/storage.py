# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Storage backend URLs: presigned S3 retrieval and public asset URLs.

Generated page images are stored in the backend configured under
``filestack.store``.  Two things are derived from that configuration:

- ``presign`` signs a GET for a private S3 object with SigV4, placing the
  signature in the query string so the URL is self-contained and
  shareable until ``X-Amz-Expires`` elapses.  Expiry is enforced by the
  store, not here.
- ``public_url`` computes the public URL of a stored object for each
  backend.

Neither function reads the clock; callers pass ``now`` where a timestamp
is part of the signature.
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from datetime import UTC, datetime

from filestack_gate.config import (
    STORE_AZURE,
    STORE_NONE,
    STORE_S3,
    ConfigError,
    StoreConfig,
)
from filestack_gate.sigv4 import (
    ALGORITHM,
    UNSIGNED_PAYLOAD,
    build_canonical_request,
    build_string_to_sign,
    canonical_uri,
    credential_scope,
    derive_signing_key,
    sign_string,
    uri_encode,
)


DEFAULT_REGION = "us-east-1"

_SERVICE = "s3"
_SIGNED_HEADERS = "host"


class ConfigurationError(ConfigError):
    """Raised when an operation does not apply to the configured store."""


def asset_path(owner: str, collection: str, asset: str = "") -> str:
    """Return the object path ``/owner/collection/asset``."""
    return f"/{owner}/{collection}/{asset}"


def s3_host_alias(region: str | None) -> str:
    """Return the S3 host alias for *region*.

    The default region uses the bare ``s3`` alias; every other region uses
    the dash-style ``s3-<region>`` alias.
    """
    if not region or region == DEFAULT_REGION:
        return "s3"
    return f"s3-{region}"


def s3_host(region: str | None) -> str:
    """Return the S3 endpoint hostname for *region*."""
    return f"{s3_host_alias(region)}.amazonaws.com"


@dataclass(frozen=True)
class PresignedQuery:
    """A presigned GET request.

    Attributes:
        host: Endpoint hostname.
        path: Object path (unencoded).
        params: Query parameters in emission order, signature last.
    """

    host: str
    path: str
    params: tuple[tuple[str, str], ...]

    @property
    def expires(self) -> int:
        """Validity window in seconds (``X-Amz-Expires``)."""
        return int(dict(self.params)["X-Amz-Expires"])

    @property
    def signature(self) -> str:
        return dict(self.params)["X-Amz-Signature"]

    @property
    def query(self) -> str:
        """Encoded query string."""
        return "&".join(
            f"{uri_encode(k)}={uri_encode(v)}" for k, v in self.params
        )

    @property
    def url(self) -> str:
        """Full HTTPS URL."""
        return urllib.parse.urlunsplit(
            (
                "https",
                self.host,
                canonical_uri(self.path),
                self.query,
                "",
            )
        )


def presign(
    store: StoreConfig,
    resource_path: str,
    expiry_seconds: int,
    *,
    now: datetime,
) -> PresignedQuery:
    """Presign a GET for *resource_path* in the configured S3 bucket.

    Args:
        store: Storage configuration.  ``account`` and ``secret`` are the
            access key pair, ``region`` selects the endpoint and signing
            region.
        resource_path: Object path, e.g. from ``asset_path``.
        expiry_seconds: Validity window embedded as ``X-Amz-Expires``.
        now: Signing time (timezone-aware, converted to UTC).

    Returns:
        The presigned request.

    Raises:
        ConfigurationError: If the store is not S3.
        ValueError: If *expiry_seconds* is not positive.
    """
    if store.location != STORE_S3:
        raise ConfigurationError(
            f"Presigning requires an S3 store, got {store.location!r}"
        )
    if expiry_seconds <= 0:
        raise ValueError(f"Expiry must be > 0s: {expiry_seconds}")

    region = store.region or DEFAULT_REGION
    host = s3_host(store.region)
    utc_now = now.astimezone(UTC)
    amz_date = utc_now.strftime("%Y%m%dT%H%M%SZ")
    date = utc_now.strftime("%Y%m%d")
    scope = credential_scope(date, region, _SERVICE)

    params: list[tuple[str, str]] = [
        ("X-Amz-Algorithm", ALGORITHM),
        ("X-Amz-Credential", f"{store.account}/{scope}"),
        ("X-Amz-Date", amz_date),
        ("X-Amz-Expires", str(expiry_seconds)),
        ("X-Amz-SignedHeaders", _SIGNED_HEADERS),
    ]

    canonical_request = build_canonical_request(
        "GET",
        resource_path,
        params,
        {"host": host},
        _SIGNED_HEADERS,
        UNSIGNED_PAYLOAD,
    )
    signing_key = derive_signing_key(store.secret, date, region, _SERVICE)
    signature = sign_string(
        signing_key, build_string_to_sign(amz_date, scope, canonical_request)
    )
    params.append(("X-Amz-Signature", signature))

    return PresignedQuery(host=host, path=resource_path, params=tuple(params))


def public_url(store: StoreConfig, key: str, url: str) -> str:
    """Return the public URL of a stored object.

    Args:
        store: Storage configuration.
        key: Object key reported by the API after storing.
        url: CDN URL reported by the API, used when there is no
            external store.

    Returns:
        Public URL of the object.

    Raises:
        ConfigurationError: If the store location is not recognized.
    """
    if store.location == STORE_NONE:
        return url
    if store.location == STORE_AZURE:
        return (
            f"https://{store.account}.blob.core.windows.net/"
            f"{store.container}/{key}"
        )
    if store.location == STORE_S3:
        return f"https://{s3_host(store.region)}/{store.container}/{key}"
    raise ConfigurationError(f"Unknown store location {store.location!r}")
