"""
project.py

Responsibility: Everything that touches a Boson project on disk or its build.

- Detect a Boson project (`CMakeLists.txt` mentioning Boson)
- Resolve the project name and the compiled executable
- Run the CMake configure + build steps
- Launch the compiled application

This module does not print; callers decide how to surface results.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from pathlib import Path

from boson_cli.config import BuildOptions

logger = logging.getLogger(__name__)

CMAKE_FILE = "CMakeLists.txt"
BUILD_DIRS = ("build", "cmake-build-debug", "cmake-build-release")

_PROJECT_RE = re.compile(r"^project\(\s*([^\s)]+)")


class ProjectError(RuntimeError):
    pass


def _read_cmake(project_dir: Path) -> str | None:
    try:
        return (project_dir / CMAKE_FILE).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def is_boson_project(project_dir: str | Path) -> bool:
    content = _read_cmake(Path(project_dir))
    return content is not None and "Boson" in content


def get_project_name(project_dir: str | Path) -> str | None:
    """
    Return the first argument of the first `project(...)` call in CMakeLists.txt.
    """
    content = _read_cmake(Path(project_dir))
    if content is None:
        return None
    for line in content.splitlines():
        m = _PROJECT_RE.match(line.strip())
        if m:
            return m.group(1)
    return None


def executable_name(project_name: str) -> str:
    return f"{project_name}.exe" if sys.platform == "win32" else project_name


def find_executable(project_dir: str | Path, build_dir: str | None = None) -> Path | None:
    """
    Locate the compiled application inside one of the known build directories.

    `build_dir` (if given) is searched before the defaults.
    """
    root = Path(project_dir)
    name = executable_name(get_project_name(root) or root.resolve().name)

    candidates = list(BUILD_DIRS)
    if build_dir and build_dir not in candidates:
        candidates.insert(0, build_dir)

    for d in candidates:
        path = root / d / name
        if path.is_file():
            return path
    return None


def _run(cmd: list[str], *, cwd: Path, stage: str) -> None:
    """
    Run a build command with output streamed to the terminal, raising ProjectError on failure.
    """
    logger.debug("Running %s in %s", " ".join(cmd), cwd)
    try:
        subprocess.run(cmd, cwd=str(cwd), check=True)
    except FileNotFoundError as e:
        raise ProjectError(f"{stage} failed: `{cmd[0]}` was not found on PATH") from e
    except subprocess.CalledProcessError as e:
        raise ProjectError(f"{stage} failed: {' '.join(cmd)} exited with status {e.returncode}") from e


def build_project(project_dir: str | Path, options: BuildOptions | None = None) -> Path:
    """
    Configure and build the project with CMake. Returns the build directory.

    Equivalent to:
        mkdir -p <build_dir> && cd <build_dir>
        cmake -DCMAKE_BUILD_TYPE=<type> [cmake_options...] ..
        cmake --build .
    """
    opts = options or BuildOptions()
    root = Path(project_dir).resolve()
    build_path = root / opts.build_dir
    try:
        build_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ProjectError(f"failed to create build directory {build_path}: {e}") from e

    configure = ["cmake", f"-DCMAKE_BUILD_TYPE={opts.build_type}", *opts.cmake_options, os.path.relpath(root, build_path)]
    _run(configure, cwd=build_path, stage="cmake configuration")
    _run(["cmake", "--build", "."], cwd=build_path, stage="build")
    return build_path


def app_args(port: int, host: str) -> list[str]:
    return [f"--port={port}", f"--host={host}"]


def launch(executable: str | Path, args: list[str], *, cwd: str | Path | None = None) -> subprocess.Popen:
    """
    Start the application without waiting for it. stdout/stderr are inherited.
    """
    cmd = [str(executable), *args]
    logger.debug("Launching %s", " ".join(cmd))
    return subprocess.Popen(cmd, cwd=str(cwd) if cwd else None)
