"""Shared pytest fixtures for the boson-cli test suite."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

CMAKE_LISTS = textwrap.dedent(
    """\
    cmake_minimum_required(VERSION 3.14)
    project(demo_app VERSION 0.1.0 LANGUAGES CXX)

    find_package(Boson REQUIRED)
    add_executable(demo_app src/main.cpp)
    target_link_libraries(demo_app PRIVATE Boson::boson)
    """
)


@pytest.fixture
def boson_project(tmp_path: Path) -> Path:
    """A minimal Boson project layout with `src/` and `include/`."""
    root = tmp_path / "demo"
    (root / "src").mkdir(parents=True)
    (root / "include").mkdir()
    (root / "CMakeLists.txt").write_text(CMAKE_LISTS, encoding="utf-8")
    (root / "src" / "main.cpp").write_text("int main() { return 0; }\n", encoding="utf-8")
    return root
