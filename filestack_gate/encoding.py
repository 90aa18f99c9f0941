# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Canonical text encodings shared by the policy and URL builders.

The remote verifier recomputes signatures over the exact bytes we emit, so
both encoders here must stay byte-for-byte stable:

- ``encode_url_safe_base64`` swaps ``+``/``/`` for ``-``/``_`` but keeps the
  ``=`` padding (unlike ``base64.urlsafe_b64encode`` callers that strip it).
- ``percent_encode`` follows ``encodeURIComponent`` rules, which leave
  ``!~*'()`` untouched.
"""

from __future__ import annotations

import base64
import urllib.parse


# Characters left as-is on top of urllib's always-safe set (A-Z a-z 0-9 _.-~)
_COMPONENT_SAFE = "!*'()"


def encode_url_safe_base64(data: str | bytes) -> str:
    """Base64-encode *data* with the URL-safe alphabet, padding kept.

    Args:
        data: Raw bytes, or text which is UTF-8 encoded first.

    Returns:
        Encoded string containing no ``+`` or ``/`` characters.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    encoded = base64.b64encode(data).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_")


def format_scalar(value: object) -> str:
    """Render an option value as the text the transformation API expects.

    Booleans become ``true``/``false`` and integral floats lose their
    fractional part, matching how the values print in a query string.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def percent_encode(value: object) -> str:
    """Percent-encode a scalar for embedding in a URL path segment.

    Args:
        value: Scalar option value.  Non-strings go through
            ``format_scalar`` first.

    Returns:
        Encoded text with uppercase ``%XX`` escapes.
    """
    return urllib.parse.quote(format_scalar(value), safe=_COMPONENT_SAFE)
