# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for processing URL synthesis."""

from filestack_gate.transform import (
    PROCESS_BASE_URL,
    build_transform_url,
    task_segment,
)


class TestTaskSegment:
    """Tests for task_segment."""

    def test_options_in_order(self) -> None:
        assert (
            task_segment("output", {"format": "jpg", "density": 125})
            == "output=format:jpg,density:125"
        )

    def test_falsy_values_omitted(self) -> None:
        """Falsy values are dropped, not emitted empty."""
        segment = task_segment(
            "store",
            {"location": "S3", "region": "", "path": None, "x": 0},
        )
        assert segment == "store=location:S3"

    def test_empty_task_still_emitted(self) -> None:
        """A task whose options are all falsy renders as 'name='."""
        assert task_segment("output", {"quality": 0}) == "output="
        assert task_segment("output", {}) == "output="

    def test_values_percent_encoded(self) -> None:
        assert (
            task_segment("store", {"path": '"docs/a b/"'})
            == "store=path:%22docs%2Fa%20b%2F%22"
        )

    def test_boolean_rendering(self) -> None:
        assert task_segment("output", {"docinfo": True}) == (
            "output=docinfo:true"
        )


class TestBuildTransformUrl:
    """Tests for build_transform_url."""

    def test_falsy_quality_omitted(self) -> None:
        url = build_transform_url(
            "KEY", {"output": {"format": "jpg", "quality": 0}}
        )
        assert url == PROCESS_BASE_URL + "KEY/output=format:jpg"
        assert "quality" not in url

    def test_literal_segment_then_security(self) -> None:
        """Strings pass through unchanged, tasks follow in order."""
        url = build_transform_url(
            "",
            "http://x/y",
            {"security": {"policy": "P", "signature": "S"}},
        )
        assert url == (
            "https://process.filestackapi.com/"
            "http://x/y/security=policy:P,signature:S"
        )

    def test_api_key_first(self) -> None:
        url = build_transform_url(
            "KEY",
            "http://x/y",
            {"security": {"policy": "P", "signature": "S"}},
        )
        assert url == (
            "https://process.filestackapi.com/"
            "KEY/http://x/y/security=policy:P,signature:S"
        )

    def test_multiple_tasks_in_one_mapping(self) -> None:
        url = build_transform_url(
            "KEY",
            {
                "security": {"policy": "P", "signature": "S"},
                "output": {"docinfo": True},
            },
            "https://example.com/doc.pdf",
        )
        assert url == (
            "https://process.filestackapi.com/KEY/"
            "security=policy:P,signature:S/output=docinfo:true/"
            "https://example.com/doc.pdf"
        )

    def test_task_order_preserved(self) -> None:
        a = build_transform_url("K", {"output": {"a": 1}, "store": {"b": 2}})
        b = build_transform_url("K", {"store": {"b": 2}, "output": {"a": 1}})
        assert a.endswith("output=a:1/store=b:2")
        assert b.endswith("store=b:2/output=a:1")

    def test_empty_task_kept(self) -> None:
        url = build_transform_url("K", {"output": {"quality": 0}}, "h")
        assert url == PROCESS_BASE_URL + "K/output=/h"

    def test_empty_mapping_skipped(self) -> None:
        """A mapping with no tasks adds no segment."""
        assert build_transform_url("K", {}, "h") == PROCESS_BASE_URL + "K/h"

    def test_stable(self) -> None:
        args = ({"output": {"format": "jpg"}}, "handle")
        assert build_transform_url("K", *args) == build_transform_url(
            "K", *args
        )
