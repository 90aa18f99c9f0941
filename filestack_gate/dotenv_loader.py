# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Load API credentials from ``.env`` files before config resolution.

``!env`` tags in ``config.yaml`` (``FILESTACK_API_KEY``,
``FILESTACK_APP_SECRET``, store keys) are resolved from the environment.
Those variables may instead live in, by priority:

1. the ``.env`` next to ``config.yaml`` in the user config directory;
2. the nearest ``.env`` found walking up from the working directory.

Variables already in the environment always win; a file never overrides
a value set by the process or by a higher-priority file.
"""

import logging
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


logger = logging.getLogger(__name__)

_loaded: tuple[Path, ...] | None = None


def dotenv_candidates(config_env: Path) -> list[Path]:
    """Return existing ``.env`` files in load order, without duplicates.

    Args:
        config_env: ``.env`` path in the user config directory.
    """
    candidates = [config_env]
    project_env = find_dotenv(usecwd=True)
    if project_env:
        candidates.append(Path(project_env))

    seen: set[Path] = set()
    result: list[Path] = []
    for path in candidates:
        if path.is_file() and path.resolve() not in seen:
            seen.add(path.resolve())
            result.append(path)
    return result


def load_dotenv_once(config_env: Path) -> tuple[Path, ...]:
    """Load ``.env`` files on the first call; later calls do nothing.

    Args:
        config_env: ``.env`` path in the user config directory.

    Returns:
        The files loaded by the first call.
    """
    global _loaded
    if _loaded is None:
        paths = dotenv_candidates(config_env)
        for path in paths:
            load_dotenv(path, override=False)
            logger.debug("Loaded environment from %s", path)
        _loaded = tuple(paths)
    return _loaded


def reset_dotenv_state() -> None:
    """Allow the next ``load_dotenv_once`` call to load again (tests)."""
    global _loaded
    _loaded = None
