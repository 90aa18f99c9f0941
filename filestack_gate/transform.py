# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""URL builder for the processing (transformation) API.

A processing URL is a sequence of path segments behind
``https://process.filestackapi.com/``: the API key, then tasks such as
``output=format:jpg,density:125`` or ``security=policy:..,signature:..``,
and usually the source file URL or handle as a literal segment.

Task order is significant to the API while option order within a task is
not.  Both follow the insertion order of the mappings passed in, so equal
inputs always produce the same URL.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from filestack_gate.encoding import percent_encode


PROCESS_BASE_URL = "https://process.filestackapi.com/"

#: Ordered mapping of task name to its option map.
TransformTask = Mapping[str, Mapping[str, Any]]


def task_segment(name: str, options: Mapping[str, Any]) -> str:
    """Render a single task as ``name=k1:v1,k2:v2``.

    Options with a falsy value are left out entirely.  A task whose options
    are all falsy still renders as ``name=``.

    Args:
        name: Task name (``output``, ``store``, ``security``, ...).
        options: Option map for the task.

    Returns:
        The task path segment.
    """
    values = ",".join(
        f"{key}:{percent_encode(value)}"
        for key, value in options.items()
        if value
    )
    return f"{name}={values}"


def _segments(param: str | TransformTask) -> str:
    if isinstance(param, str):
        return param
    return "/".join(
        task_segment(name, options) for name, options in param.items()
    )


def build_transform_url(api_key: str, *params: str | TransformTask) -> str:
    """Build a processing API URL.

    Args:
        api_key: Application API key, emitted as the first path segment
            when non-empty.
        *params: Literal path segments (file URL or handle) and task
            mappings, in the order they should appear.  Empty strings
            and empty mappings are skipped.

    Returns:
        The full processing URL.

    Example:
        >>> build_transform_url("KEY", {"output": {"docinfo": True}}, "abc")
        'https://process.filestackapi.com/KEY/output=docinfo:true/abc'
    """
    segments = [api_key] if api_key else []
    # A mapping without tasks contributes no segment
    segments.extend(_segments(param) for param in params if param)
    return PROCESS_BASE_URL + "/".join(segments)
