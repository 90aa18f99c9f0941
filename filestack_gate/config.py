# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Configuration for the file API gateway.

Configuration is loaded from a YAML file.  The default location follows
the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/filestack-gate/config.yaml``
    (typically ``~/.config/filestack-gate/config.yaml``)

``!env`` tags resolve values from environment variables, so secrets can
live in the environment (or a ``.env`` file) rather than in the YAML::

    filestack:
      api_key: !env FILESTACK_API_KEY
      app_secret: !env FILESTACK_APP_SECRET
      timeout: 30
      store:
        location: S3
        account: !env STORE_ACCESS_KEY_ID
        secret: !env STORE_SECRET_ACCESS_KEY
        container: my-bucket
        region: eu-west-1
        path: previews/

The loaded ``FilestackConfig`` is frozen.  It is read once at process start
and passed explicitly to the code that needs it.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, overload

import yaml
from platformdirs import user_config_path

from filestack_gate.dotenv_loader import load_dotenv_once
from filestack_gate.logging import SecretFilter


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "filestack-gate"

_BOOL_TRUTHY = frozenset({"true", "1", "yes", "on"})
_BOOL_FALSY = frozenset({"false", "0", "no", "off"})

#: Store location with no external storage (files stay on the CDN).
STORE_NONE = ""
STORE_AZURE = "azure"
STORE_S3 = "S3"

STORE_LOCATIONS = frozenset({STORE_NONE, STORE_AZURE, STORE_S3})


def get_config_path() -> Path:
    """Return the default config file path.

    Uses XDG: ``$XDG_CONFIG_HOME/filestack-gate/config.yaml``.

    Returns:
        Path to the config file.
    """
    return user_config_path(_APP_NAME) / "config.yaml"


def get_dotenv_path() -> Path:
    """Return the default ``.env`` file path inside the XDG config directory.

    Returns:
        Path to the ``.env`` file.
    """
    return user_config_path(_APP_NAME) / ".env"


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _coerce_bool(value: object) -> bool:
    """Coerce a value to bool, handling string representations."""
    if isinstance(value, bool):
        return value
    s = str(value).lower().strip()
    if s in _BOOL_TRUTHY:
        return True
    if s in _BOOL_FALSY:
        return False
    raise ConfigError(f"Cannot convert {value!r} to bool")


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is unset/empty.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name) or None
    if value is None:
        return None
    return str(value)


_MISSING = object()

T = TypeVar("T")


@overload
def _resolve(value: object, coerce: type[T], *, default: T) -> T: ...


@overload
def _resolve(
    value: object,
    coerce: type[T],
    *,
    required: str,
) -> T: ...


@overload
def _resolve(value: object, coerce: type[T]) -> T | None: ...


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
    required: str = "",
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str``, ``int``, ``float``, ``bool``).
        default: Default when value is absent.  Not allowed together
            with *required*.
        required: Human-readable field name.  When set, raises
            ``ConfigError`` if the value is absent.

    Returns:
        The resolved, coerced value, or None when optional and absent.
    """
    if not isinstance(value, _EnvVar) and value is not None:
        if coerce is bool:
            return _coerce_bool(value)
        if isinstance(value, coerce) and not isinstance(value, bool):
            return value

    resolved = _raw_resolve(value)

    if resolved is None:
        if required:
            if isinstance(value, _EnvVar):
                raise ConfigError(
                    f"Required config '{required}': environment variable "
                    f"'{value.var_name}' is not set"
                )
            raise ConfigError(f"Required config '{required}' is missing")
        if default is not _MISSING:
            return default
        return None

    if coerce is bool:
        return _coerce_bool(resolved)
    try:
        return coerce(resolved)
    except ValueError as e:
        raise ConfigError(
            f"Cannot convert {resolved!r} to {coerce.__name__}"
        ) from e


def _mapping(raw: object, name: str) -> dict:
    """Return *raw* as a dict, treating None as empty."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{name}' must be a YAML mapping")
    return raw


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreConfig:
    """Storage backend that transformation results are written to.

    Attributes:
        location: ``""`` (no external store), ``"azure"`` or ``"S3"``.
        account: Azure account name, or S3 access key id.
        secret: S3 secret access key (auto-redacted in logs).
        container: Azure container or S3 bucket.
        region: S3 region.  Empty means ``us-east-1``.
        path: Key prefix for stored files.
    """

    location: str = STORE_NONE
    account: str = ""
    secret: str = ""
    container: str = ""
    region: str = ""
    path: str = ""

    def __post_init__(self) -> None:
        """Validate the backend name.

        Raises:
            ConfigError: If ``location`` is not a known backend.
        """
        if self.location not in STORE_LOCATIONS:
            known = ", ".join(repr(loc) for loc in sorted(STORE_LOCATIONS))
            raise ConfigError(
                f"Unknown store location {self.location!r} "
                f"(expected one of {known})"
            )


@dataclass(frozen=True)
class FilestackConfig:
    """Process-wide API credentials and storage settings.

    Attributes:
        api_key: Application API key.
        app_secret: App secret for policy signing.  Empty disables
            signing (auto-redacted in logs).
        store: Storage backend settings.
        timeout_seconds: HTTP timeout for calls to the remote API.
    """

    api_key: str
    app_secret: str = ""
    store: StoreConfig = field(default_factory=StoreConfig)
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate configuration and register secrets for redaction.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if not self.api_key:
            raise ConfigError("Required config 'filestack.api_key' is missing")
        if self.timeout_seconds <= 0:
            raise ConfigError(
                f"Timeout must be > 0s: {self.timeout_seconds}"
            )
        SecretFilter.register(self.app_secret, self.store.secret)

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "FilestackConfig":
        """Load configuration from a YAML file.

        Values tagged with ``!env VAR_NAME`` are resolved from the
        environment at load time.  ``.env`` files are loaded first if
        present.

        Args:
            config_path: Path to YAML config file.  Defaults to
                ``get_config_path()``.

        Returns:
            FilestackConfig instance.

        Raises:
            ConfigError: If the file is missing or required values are absent.
        """
        load_dotenv_once(get_dotenv_path())

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            raw = yaml.load(f, Loader=_make_loader())

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls.from_dict(raw)
        logger.debug("Loaded config from %s", config_path)
        return config

    @classmethod
    def from_dict(cls, raw: dict) -> "FilestackConfig":
        """Build config from parsed (but unresolved) YAML dict."""
        filestack = _mapping(raw.get("filestack"), "filestack")
        store = _mapping(filestack.get("store"), "filestack.store")

        store_config = StoreConfig(
            location=_resolve(store.get("location"), str, default=STORE_NONE),
            account=_resolve(store.get("account"), str, default=""),
            secret=_resolve(store.get("secret"), str, default=""),
            container=_resolve(store.get("container"), str, default=""),
            region=_resolve(store.get("region"), str, default=""),
            path=_resolve(store.get("path"), str, default=""),
        )

        return cls(
            api_key=_resolve(
                filestack.get("api_key"), str, required="filestack.api_key"
            ),
            app_secret=_resolve(filestack.get("app_secret"), str, default=""),
            store=store_config,
            timeout_seconds=_resolve(
                filestack.get("timeout"), float, default=30.0
            ),
        )
