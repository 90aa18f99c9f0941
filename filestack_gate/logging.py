# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging setup with credential redaction.

Two kinds of credentials can reach a log line:

- raw secrets (the app secret and the store's secret access key), which
  are registered with ``SecretFilter.register`` when configuration loads;
- signed values embedded in URLs: the ``policy``/``signature`` pair of
  file API query strings and of the processing ``security`` task, and
  ``X-Amz-Signature`` of presigned store URLs.  These grant access until
  they expire even though no raw secret appears in them.

``configure_logging`` installs a single stderr handler carrying a
``SecretFilter``, so both kinds are replaced with ``[REDACTED]``.  The
filter sits on the handler, so records from ``httpx`` (which logs every
request URL) are covered too.

Usage:
    # In entry points (CLI)
    from filestack_gate.logging import configure_logging
    configure_logging(level=logging.DEBUG)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.debug("%s %s", method, url)
"""

import logging
import re
import sys
from typing import IO, ClassVar


REDACTED = "[REDACTED]"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# ``policy=...`` / ``signature=...`` in query strings, ``policy:...`` /
# ``signature:...`` in transform task options, and ``X-Amz-Signature=...``.
_SIGNED_VALUE = re.compile(
    r"(?P<key>\b(?:policy|signature|X-Amz-Signature)[=:])[^&,/\s\"']+"
)


class SecretFilter(logging.Filter):
    """Replace credentials in log records with ``[REDACTED]``.

    Raw secrets are process-wide: they are registered once (normally by
    ``FilestackConfig``) and apply to every filter instance.
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    @classmethod
    def register(cls, *secrets: str) -> None:
        """Register raw secrets for redaction.  Empty values are ignored."""
        added = {s for s in secrets if s}
        if added - cls._secrets:
            cls._secrets |= added
            # Longest first so a secret containing another is fully redacted
            ordered = sorted(cls._secrets, key=len, reverse=True)
            cls._pattern = re.compile("|".join(map(re.escape, ordered)))

    @classmethod
    def clear_secrets(cls) -> None:
        """Forget all registered secrets."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def redact(cls, text: str) -> str:
        """Return *text* with raw secrets and signed values redacted."""
        if cls._pattern is not None:
            text = cls._pattern.sub(REDACTED, text)
        return _SIGNED_VALUE.sub(rf"\g<key>{REDACTED}", text)

    def filter(self, record: logging.LogRecord) -> bool:
        # Arguments are not always strings (httpx logs ``httpx.URL``), so
        # redact the formatted message.
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def configure_logging(
    level: int = logging.WARNING,
    *,
    stream: IO[str] | None = None,
    format_string: str = DEFAULT_FORMAT,
) -> None:
    """Route all logging to one redacting stream handler.

    Replaces any handlers already on the root logger.  ``httpcore`` is
    kept at INFO or above; its DEBUG output is connection-level noise.

    Args:
        level: Root logger level.
        stream: Output stream.  Defaults to ``sys.stderr`` so log lines
            never mix with command output on stdout.
        format_string: ``logging.Formatter`` format.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(format_string))
    handler.addFilter(SecretFilter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("httpcore").setLevel(max(level, logging.INFO))
