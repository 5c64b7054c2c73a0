"""
boson_cli package

Command line tooling for Boson (C++/CMake) web applications.

Key responsibilities are split across modules:
- `config.py`: load the YAML config file and env overrides into typed options
- `project.py`: project detection, executable lookup, CMake builds, launching
- `renderer.py`: render component templates into a project
- `watcher.py`: filesystem notifications coalesced into a single change signal
- `supervisor.py`: watch mode (rebuild + restart on change)
- `console.py`: status output and logging setup
- `cli.py`: CLI entrypoint and orchestration
"""

from __future__ import annotations

__all__ = ["__version__", "BUILD_DATE", "GIT_COMMIT"]

__version__ = "0.1.0"

BUILD_DATE = "2025-04-15"
GIT_COMMIT = "development"
