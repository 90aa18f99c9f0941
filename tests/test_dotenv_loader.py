# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for loading credentials from .env files."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from filestack_gate.dotenv_loader import dotenv_candidates, load_dotenv_once


@pytest.fixture
def layout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Config dir and project dir; the working directory is a subdirectory
    of the project so its ``.env`` is found by walking up."""
    (tmp_path / "config").mkdir()
    work = tmp_path / "project" / "src"
    work.mkdir(parents=True)
    monkeypatch.chdir(work)
    return tmp_path


class TestDotenvCandidates:
    """Tests for dotenv_candidates."""

    def test_config_dir_then_project(self, layout: Path) -> None:
        config_env = layout / "config" / ".env"
        config_env.write_text("A=1\n")
        project_env = layout / "project" / ".env"
        project_env.write_text("B=2\n")

        found = dotenv_candidates(config_env)
        assert [p.resolve() for p in found] == [
            config_env.resolve(),
            project_env.resolve(),
        ]

    def test_missing_config_env_skipped(self, layout: Path) -> None:
        project_env = layout / "project" / ".env"
        project_env.write_text("B=2\n")
        found = dotenv_candidates(layout / "config" / ".env")
        assert [p.resolve() for p in found] == [project_env.resolve()]

    def test_same_file_listed_once(self, layout: Path) -> None:
        project_env = layout / "project" / ".env"
        project_env.write_text("B=2\n")
        assert len(dotenv_candidates(project_env)) == 1

    def test_none_found(self, layout: Path) -> None:
        with patch(
            "filestack_gate.dotenv_loader.find_dotenv", return_value=""
        ):
            assert dotenv_candidates(layout / "config" / ".env") == []


class TestLoadDotenvOnce:
    """Tests for load_dotenv_once."""

    def test_config_dir_wins_over_project(self, layout: Path) -> None:
        config_env = layout / "config" / ".env"
        config_env.write_text("FILESTACK_APP_SECRET=from-config\n")
        (layout / "project" / ".env").write_text(
            "FILESTACK_APP_SECRET=from-project\nFILESTACK_API_KEY=K\n"
        )
        with patch.dict(os.environ, clear=True):
            loaded = load_dotenv_once(config_env)
            assert os.environ["FILESTACK_APP_SECRET"] == "from-config"
            assert os.environ["FILESTACK_API_KEY"] == "K"
        assert len(loaded) == 2

    def test_process_environment_wins(self, layout: Path) -> None:
        config_env = layout / "config" / ".env"
        config_env.write_text("FILESTACK_API_KEY=from-file\n")
        with patch.dict(
            os.environ, {"FILESTACK_API_KEY": "from-env"}, clear=True
        ):
            load_dotenv_once(config_env)
            assert os.environ["FILESTACK_API_KEY"] == "from-env"

    def test_loads_only_once(self, layout: Path) -> None:
        config_env = layout / "config" / ".env"
        config_env.write_text("FILESTACK_API_KEY=first\n")
        with patch.dict(os.environ, clear=True):
            first = load_dotenv_once(config_env)
            del os.environ["FILESTACK_API_KEY"]
            assert load_dotenv_once(config_env) == first
            assert "FILESTACK_API_KEY" not in os.environ
