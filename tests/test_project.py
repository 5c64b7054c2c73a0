"""Tests for boson_cli.project: detection, executable lookup, CMake invocation."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from boson_cli.config import BuildOptions
from boson_cli.project import (
    ProjectError,
    app_args,
    build_project,
    executable_name,
    find_executable,
    get_project_name,
    is_boson_project,
    launch,
)


def _make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x7fELF")
    return path


class TestDetection:
    def test_boson_project(self, boson_project: Path):
        assert is_boson_project(boson_project)

    def test_plain_cmake_project_is_not_boson(self, tmp_path: Path):
        (tmp_path / "CMakeLists.txt").write_text("project(other)\n", encoding="utf-8")
        assert not is_boson_project(tmp_path)

    def test_missing_cmake_lists(self, tmp_path: Path):
        assert not is_boson_project(tmp_path)

    def test_project_name_from_cmake(self, boson_project: Path):
        assert get_project_name(boson_project) == "demo_app"

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("project(api)", "api"),
            ("  project( spaced VERSION 1.0 )", "spaced"),
            ("project(my-app LANGUAGES CXX)", "my-app"),
        ],
    )
    def test_project_name_variants(self, tmp_path: Path, line: str, expected: str):
        (tmp_path / "CMakeLists.txt").write_text(f"cmake_minimum_required(VERSION 3.14)\n{line}\n", encoding="utf-8")
        assert get_project_name(tmp_path) == expected

    def test_project_name_absent(self, tmp_path: Path):
        (tmp_path / "CMakeLists.txt").write_text("# Boson\n", encoding="utf-8")
        assert get_project_name(tmp_path) is None


class TestFindExecutable:
    def test_found_in_default_build_dir(self, boson_project: Path):
        exe = _make_executable(boson_project / "build" / executable_name("demo_app"))
        assert find_executable(boson_project) == exe

    def test_found_in_cmake_build_release(self, boson_project: Path):
        exe = _make_executable(boson_project / "cmake-build-release" / executable_name("demo_app"))
        assert find_executable(boson_project) == exe

    def test_custom_build_dir_is_searched_first(self, boson_project: Path):
        _make_executable(boson_project / "build" / executable_name("demo_app"))
        custom = _make_executable(boson_project / "out" / executable_name("demo_app"))
        assert find_executable(boson_project, "out") == custom

    def test_falls_back_to_directory_name(self, tmp_path: Path):
        root = tmp_path / "fallback"
        (root / "build").mkdir(parents=True)
        (root / "CMakeLists.txt").write_text("# uses Boson\n", encoding="utf-8")
        exe = _make_executable(root / "build" / executable_name("fallback"))
        assert find_executable(root) == exe

    def test_not_built_yet(self, boson_project: Path):
        (boson_project / "build").mkdir()
        assert find_executable(boson_project) is None


class TestBuildProject:
    def test_configure_then_build(self, boson_project: Path):
        with patch("boson_cli.project.subprocess.run") as run:
            build_path = build_project(boson_project)

        assert build_path == boson_project.resolve() / "build"
        assert build_path.is_dir()
        configure, build = run.call_args_list
        assert configure.args[0] == ["cmake", "-DCMAKE_BUILD_TYPE=Debug", ".."]
        assert configure.kwargs["cwd"] == str(build_path)
        assert configure.kwargs["check"] is True
        assert build.args[0] == ["cmake", "--build", "."]
        assert build.kwargs["cwd"] == str(build_path)

    def test_release_and_extra_options(self, boson_project: Path):
        opts = BuildOptions(build_dir="out/release", release=True, cmake_options=("-DBOSON_TESTS=OFF",))
        with patch("boson_cli.project.subprocess.run") as run:
            build_project(boson_project, opts)

        configure = run.call_args_list[0]
        assert configure.args[0][:3] == ["cmake", "-DCMAKE_BUILD_TYPE=Release", "-DBOSON_TESTS=OFF"]
        assert Path(configure.args[0][3]).as_posix() == "../.."

    def test_configure_failure_names_the_stage(self, boson_project: Path):
        err = subprocess.CalledProcessError(1, ["cmake"])
        with patch("boson_cli.project.subprocess.run", side_effect=err) as run:
            with pytest.raises(ProjectError, match="cmake configuration failed"):
                build_project(boson_project)
        assert run.call_count == 1

    def test_build_failure_names_the_stage(self, boson_project: Path):
        err = subprocess.CalledProcessError(2, ["cmake", "--build", "."])
        with patch("boson_cli.project.subprocess.run", side_effect=[MagicMock(), err]):
            with pytest.raises(ProjectError, match=r"^build failed: .*status 2"):
                build_project(boson_project)

    def test_missing_cmake(self, boson_project: Path):
        with patch("boson_cli.project.subprocess.run", side_effect=FileNotFoundError("cmake")):
            with pytest.raises(ProjectError, match="not found on PATH"):
                build_project(boson_project)


class TestLaunch:
    def test_app_args(self):
        assert app_args(3000, "127.0.0.1") == ["--port=3000", "--host=127.0.0.1"]

    def test_launch_does_not_wait(self, tmp_path: Path):
        with patch("boson_cli.project.subprocess.Popen") as popen:
            proc = launch(tmp_path / "app", ["--port=1"], cwd=tmp_path)

        assert proc is popen.return_value
        popen.assert_called_once_with([str(tmp_path / "app"), "--port=1"], cwd=str(tmp_path))
        popen.return_value.wait.assert_not_called()
