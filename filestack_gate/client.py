# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Client for the file and processing APIs.

Each method builds its own call-specific policy (capabilities and expiry
differ per call, so policies are never cached), synthesizes the request
URL, and performs at most one HTTP request.

Failure handling:

- Transport failures and non-2xx responses surface as ``httpx`` errors
  (``UpstreamError`` is an alias of ``httpx.HTTPError``).  They propagate
  unchanged; there are no retries.
- A body that is not the expected JSON raises ``MalformedResponseError``.
"""

from __future__ import annotations

import logging
import posixpath
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

import httpx

from filestack_gate.config import FilestackConfig
from filestack_gate.policy import AccessPolicy, Security, build_policy
from filestack_gate.storage import asset_path, presign, public_url
from filestack_gate.transform import build_transform_url


logger = logging.getLogger(__name__)

FILE_API_URL = "https://www.filestackapi.com/api/file"

#: Validity of read policies for file retrieval URLs.
READ_POLICY_TTL_MS = 60_000

#: Validity of presigned asset URLs.
ASSET_URL_EXPIRY_SECONDS = 3 * 60

#: Fixed conversion options for page previews.
PAGE_IMAGE_OPTIONS: dict[str, Any] = {
    "secure": True,
    "compress": True,
    "format": "jpg",
    "density": 125,
}

UpstreamError = httpx.HTTPError


class MalformedResponseError(Exception):
    """Response body could not be parsed as the expected JSON.

    Attributes:
        body: Raw response text.
    """

    def __init__(self, message: str, body: str) -> None:
        super().__init__(message)
        self.body = body


@dataclass(frozen=True)
class DocumentInfo:
    """Page count and dimensions of a document.

    Attributes:
        pages_count: Number of pages.
        natural_width: Page width in pixels.
        natural_height: Page height in pixels.
        aspect_ratio: Height divided by width.
        pages: Per-page data, filled in by callers.
    """

    pages_count: int
    natural_width: int
    natural_height: int
    aspect_ratio: float
    pages: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for JSON export."""
        return {
            "pagesCount": self.pages_count,
            "naturalWidth": self.natural_width,
            "naturalHeight": self.natural_height,
            "aspectRatio": self.aspect_ratio,
            "pages": dict(self.pages),
        }


@dataclass(frozen=True)
class DocumentPage:
    """A page image stored by the processing API.

    Attributes:
        url: CDN URL of the stored image.
        key: Storage key of the image.
        handle: File handle (last path segment of ``url``).
        basename: File name part of ``key``.
        public_url: Public URL in the configured store.
        raw: Full response body.
    """

    url: str
    key: str
    handle: str
    basename: str
    public_url: str
    raw: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for JSON export (response fields included)."""
        return {
            **self.raw,
            "handle": self.handle,
            "basename": self.basename,
            "publicUrl": self.public_url,
        }


def _parse_json(response: httpx.Response) -> Any:
    """Parse a JSON body or raise ``MalformedResponseError``."""
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(
            f"Response from {response.request.url} is not valid JSON",
            response.text,
        ) from e


class FilestackClient:
    """Synchronous client for the file and processing APIs.

    Args:
        config: Loaded configuration.
        http_client: Client to send requests with.  When omitted, one is
            created (and closed by ``close``) with the configured timeout.
        clock: Returns the current time in epoch seconds.  Only used for
            expiries; signing itself never reads the clock.
    """

    def __init__(
        self,
        config: FilestackConfig,
        *,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            timeout=config.timeout_seconds
        )
        self._clock = clock

    def __enter__(self) -> FilestackClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._http.close()

    def _policy(self, policy: AccessPolicy) -> Security:
        return build_policy(self._config.app_secret, policy)

    def _request(
        self, method: str, url: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        logger.debug("%s %s", method, url)
        response = self._http.request(method, url, params=params)
        response.raise_for_status()
        return response

    # -- file API ---------------------------------------------------------

    def file_url(self, handle: str) -> str:
        """Return a signed, short-lived retrieval URL for a file.

        Args:
            handle: File handle.

        Returns:
            URL of the file on the CDN, valid for one minute.
        """
        expiry = int(self._clock() * 1000) + READ_POLICY_TTL_MS
        security = self._policy(
            AccessPolicy(capabilities=("read",), handle=handle, expiry=expiry)
        )
        params = {"key": self._config.api_key, **security.query_params()}
        return str(httpx.URL(f"{FILE_API_URL}/{handle}", params=params))

    def remove(self, handle: str) -> str:
        """Delete a file.

        Args:
            handle: File handle.

        Returns:
            Raw response body.
        """
        security = self._policy(
            AccessPolicy(capabilities=("remove",), handle=handle)
        )
        logger.info("Removing file %s", handle)
        response = self._request(
            "DELETE",
            f"{FILE_API_URL}/{handle}",
            params={"key": self._config.api_key, **security.query_params()},
        )
        return response.text

    # -- processing API ---------------------------------------------------

    def _document_security(self, url: str) -> Security:
        return self._policy(
            AccessPolicy(capabilities=("store", "convert"), url=url)
        )

    def document_info(self, url: str) -> DocumentInfo:
        """Fetch page count and page dimensions of a document.

        Args:
            url: Public URL of the document.

        Returns:
            Document metadata.

        Raises:
            MalformedResponseError: If the response lacks the expected
                fields.
        """
        security = self._document_security(url)
        request_url = build_transform_url(
            self._config.api_key,
            {**security.transform_task(), "output": {"docinfo": True}},
            url,
        )
        response = self._request("GET", request_url)
        info = _parse_json(response)

        try:
            width = info["dimensions"]["width"]
            height = info["dimensions"]["height"]
            return DocumentInfo(
                pages_count=info["numpages"],
                natural_width=width,
                natural_height=height,
                aspect_ratio=height / width,
            )
        except (KeyError, TypeError, ZeroDivisionError) as e:
            raise MalformedResponseError(
                f"Unexpected docinfo response: {e!r}", response.text
            ) from e

    def _store_task(self, base_path: str | None) -> dict[str, Any]:
        store = self._config.store
        if not store.location:
            return {}

        options: dict[str, Any] = {
            "location": store.location,
            "container": store.container,
        }

        store_path = store.path
        if base_path:
            if not base_path.endswith("/"):
                base_path += "/"
            store_path += base_path
        if store_path:
            options["path"] = f'"{store_path}"'

        if store.region:
            options["region"] = store.region

        return {"store": options}

    def generate_document_page(
        self, url: str, page: int = 1, base_path: str | None = None
    ) -> DocumentPage:
        """Render one page of a document to JPEG and store it.

        Args:
            url: Public URL of the document.
            page: 1-based page number.
            base_path: Extra key prefix appended to the configured store
                path.

        Returns:
            The stored page image.

        Raises:
            MalformedResponseError: If the response lacks ``url`` or
                ``key``.
        """
        security = self._document_security(url)
        tasks: dict[str, Any] = {
            **security.transform_task(),
            "output": {**PAGE_IMAGE_OPTIONS, "page": page},
            **self._store_task(base_path),
        }
        request_url = build_transform_url(self._config.api_key, tasks, url)
        response = self._request("POST", request_url)
        result = _parse_json(response)

        if not isinstance(result, dict):
            raise MalformedResponseError(
                "Expected a JSON object", response.text
            )
        stored_url = result.get("url")
        key = result.get("key")
        if not isinstance(stored_url, str) or not isinstance(key, str):
            raise MalformedResponseError(
                "Store response needs string 'url' and 'key' fields",
                response.text,
            )

        return DocumentPage(
            url=stored_url,
            key=key,
            handle=stored_url.rsplit("/", 1)[-1],
            basename=posixpath.basename(key),
            public_url=public_url(self._config.store, key, stored_url),
            raw=result,
        )

    # -- storage ----------------------------------------------------------

    def asset_url(self, owner: str, collection: str, asset: str) -> str:
        """Return a presigned URL for an asset in the S3 store.

        The URL is valid for three minutes.

        Raises:
            ConfigurationError: If the store is not S3.
        """
        signed = presign(
            self._config.store,
            asset_path(owner, collection, asset),
            ASSET_URL_EXPIRY_SECONDS,
            now=datetime.fromtimestamp(self._clock(), UTC),
        )
        return signed.url
