# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Security policies for the file API.

A policy is a small JSON document listing the calls a request may make
(``call``), the resource it is scoped to (``handle`` or ``url``) and an
expiry.  The document is base64url-encoded and signed with the app secret;
the service recomputes the signature over the encoded bytes, so key order
and JSON formatting are part of the contract:

- ``expiry`` always comes first (it is the default the caller's fields are
  merged over), followed by the caller's fields in insertion order.
- JSON is compact (no spaces) and keeps non-ASCII characters as-is.

When no app secret is configured, ``build_policy`` returns
``Unauthenticated`` instead of raising: the caller proceeds without
``policy``/``signature`` parameters.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from filestack_gate.encoding import encode_url_safe_base64
from filestack_gate.signing import sign


logger = logging.getLogger(__name__)

#: Far-future expiry in epoch milliseconds (year 275760).
MAX_EXPIRY_MS = 8640000000000000

_REGEXP_SPECIAL_RE = re.compile(r"[|\\{}()\[\]^$+*?.]")


def escape_regexp(value: str) -> str:
    """Backslash-escape regex metacharacters in *value*.

    The service matches a policy ``url`` as a regular expression, so
    characters like ``.`` or ``*`` would otherwise widen what the policy
    grants.

    Args:
        value: Literal URL (or any string).

    Returns:
        Pattern text that matches only *value*.
    """
    return _REGEXP_SPECIAL_RE.sub(lambda m: "\\" + m.group(0), value)


@dataclass(frozen=True)
class AccessPolicy:
    """Capability and resource scope of a single API call.

    Attributes:
        capabilities: Allowed calls, e.g. ``("read",)`` or
            ``("store", "convert")``.
        expiry: Expiry in epoch milliseconds.  None keeps the far-future
            default.
        url: Resource URL the policy is scoped to.
        handle: File handle the policy is scoped to.
    """

    capabilities: tuple[str, ...]
    expiry: int | None = None
    url: str | None = None
    handle: str | None = None

    def __post_init__(self) -> None:
        """Validate the resource scope.

        Raises:
            ValueError: If both ``url`` and ``handle`` are set.
        """
        if self.url is not None and self.handle is not None:
            raise ValueError(
                "Policy may be scoped to a url or a handle, not both"
            )

    def to_fields(self) -> dict[str, Any]:
        """Return the policy fields in wire order.

        Order is ``call``, then ``handle`` or ``url``, then ``expiry`` when
        set.  ``build_policy`` moves ``expiry`` to the front on merge.
        """
        fields: dict[str, Any] = {"call": list(self.capabilities)}
        if self.handle is not None:
            fields["handle"] = self.handle
        if self.url is not None:
            fields["url"] = self.url
        if self.expiry is not None:
            fields["expiry"] = self.expiry
        return fields


@dataclass(frozen=True)
class SignedPolicy:
    """An encoded policy and its signature.

    Attributes:
        policy: base64url-encoded JSON policy document.
        signature: Lowercase hex HMAC-SHA256 of ``policy``.
    """

    policy: str
    signature: str

    def query_params(self) -> dict[str, str]:
        """Return ``policy`` and ``signature`` as query parameters."""
        return {"policy": self.policy, "signature": self.signature}

    def task_options(self) -> dict[str, str]:
        """Return the option map of a ``security`` transform task."""
        return self.query_params()


@dataclass(frozen=True)
class Authorized:
    """A call carrying a signed policy."""

    signed: SignedPolicy

    @property
    def is_authorized(self) -> bool:
        """Always True; callers send the signed policy."""
        return True

    def query_params(self) -> dict[str, str]:
        """Return the signed policy as query parameters."""
        return self.signed.query_params()

    def transform_task(self) -> dict[str, dict[str, str]]:
        """Return the ``security`` transform task."""
        return {"security": self.signed.task_options()}


@dataclass(frozen=True)
class Unauthenticated:
    """No app secret is configured; calls go out without a policy."""

    @property
    def is_authorized(self) -> bool:
        """Always False; calls go out without a policy."""
        return False

    def query_params(self) -> dict[str, str]:
        """Return no query parameters."""
        return {}

    def transform_task(self) -> dict[str, dict[str, str]]:
        """Return no transform task."""
        return {}


#: Result of ``build_policy``.
Security = Authorized | Unauthenticated


def encode_policy(fields: Mapping[str, Any] | AccessPolicy) -> str:
    """Merge *fields* over the defaults and base64url-encode the JSON.

    Args:
        fields: Policy fields, either as an ``AccessPolicy`` or as an
            ordered mapping of wire keys (``call``, ``url``, ``handle``,
            ``expiry``, ...).

    Returns:
        The encoded policy string that gets signed.
    """
    if isinstance(fields, AccessPolicy):
        fields = fields.to_fields()

    document: dict[str, Any] = {"expiry": MAX_EXPIRY_MS}
    document.update(fields)

    if document.get("url"):
        document["url"] = escape_regexp(document["url"])

    serialized = json.dumps(
        document, separators=(",", ":"), ensure_ascii=False
    )
    return encode_url_safe_base64(serialized)


def build_policy(
    secret: str | None, fields: Mapping[str, Any] | AccessPolicy
) -> Security:
    """Build and sign a policy.

    Args:
        secret: App secret.  Empty or None disables authorization.
        fields: Policy fields, see ``encode_policy``.

    Returns:
        ``Authorized`` with the signed policy, or ``Unauthenticated`` when
        no secret is configured.
    """
    if not secret:
        logger.debug("No app secret configured, skipping policy signing")
        return Unauthenticated()

    encoded = encode_policy(fields)
    return Authorized(
        SignedPolicy(policy=encoded, signature=sign(encoded, secret))
    )
