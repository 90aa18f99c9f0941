# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""HMAC signing and REST Basic-auth credentials.

Both helpers derive from the app secret only and hold no state.  The
signature format (HMAC-SHA256, lowercase hex) is what the remote service
recomputes on its side, so it must not change.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

from filestack_gate.encoding import encode_url_safe_base64


#: Credential prefix used by the REST API for app-secret Basic auth.
BASIC_AUTH_PREFIX = "app"


def sign(message: str | bytes, secret: str) -> str:
    """Compute the HMAC-SHA256 of *message* keyed with *secret*.

    Args:
        message: Text (UTF-8 encoded) or raw bytes to sign.
        secret: Shared app secret.

    Returns:
        Lowercase hex digest.
    """
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def basic_auth_token(prefix: str, secret: str) -> str:
    """Encode ``<prefix>:<secret>`` for a Basic ``Authorization`` header."""
    return encode_url_safe_base64(f"{prefix}:{secret}")


@dataclass(frozen=True)
class AuthHeader:
    """A ready-to-send ``Authorization`` header."""

    name: str
    value: str

    def as_dict(self) -> dict[str, str]:
        """Return the header as a mapping usable for request headers."""
        return {self.name: self.value}


def auth_header(secret: str | None) -> AuthHeader | None:
    """Build the REST ``Authorization`` header for *secret*.

    Args:
        secret: App secret.  Empty or None disables authentication.

    Returns:
        The header, or None when no secret is configured.
    """
    if not secret:
        return None
    return AuthHeader(
        name="Authorization",
        value=f"Basic {basic_auth_token(BASIC_AUTH_PREFIX, secret)}",
    )
