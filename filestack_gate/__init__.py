# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Request authorization and URL synthesis for the Filestack API.

- Security policies and their HMAC signatures (``policy``, ``signing``)
- Processing API URLs built from ordered task mappings (``transform``)
- Presigned S3 URLs for stored assets (``storage``, ``sigv4``)
- A thin HTTP client for the file and processing APIs (``client``)
- Configuration loading (``config``)
"""

from filestack_gate.client import (
    DocumentInfo,
    DocumentPage,
    FilestackClient,
    MalformedResponseError,
    UpstreamError,
)
from filestack_gate.config import ConfigError, FilestackConfig, StoreConfig
from filestack_gate.encoding import encode_url_safe_base64, percent_encode
from filestack_gate.policy import (
    MAX_EXPIRY_MS,
    AccessPolicy,
    Authorized,
    Security,
    SignedPolicy,
    Unauthenticated,
    build_policy,
    escape_regexp,
)
from filestack_gate.signing import (
    AuthHeader,
    auth_header,
    basic_auth_token,
    sign,
)
from filestack_gate.storage import (
    ConfigurationError,
    PresignedQuery,
    asset_path,
    presign,
    public_url,
    s3_host_alias,
)
from filestack_gate.transform import build_transform_url, task_segment


__all__ = [
    # client
    "DocumentInfo",
    "DocumentPage",
    "FilestackClient",
    "MalformedResponseError",
    "UpstreamError",
    # config
    "ConfigError",
    "FilestackConfig",
    "StoreConfig",
    # encoding
    "encode_url_safe_base64",
    "percent_encode",
    # policy
    "MAX_EXPIRY_MS",
    "AccessPolicy",
    "Authorized",
    "Security",
    "SignedPolicy",
    "Unauthenticated",
    "build_policy",
    "escape_regexp",
    # signing
    "AuthHeader",
    "auth_header",
    "basic_auth_token",
    "sign",
    # storage
    "ConfigurationError",
    "PresignedQuery",
    "asset_path",
    "presign",
    "public_url",
    "s3_host_alias",
    # transform
    "build_transform_url",
    "task_segment",
]
