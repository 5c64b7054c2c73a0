"""
config.py

Responsibility: Load CLI configuration into typed, per-invocation options.

Sources, lowest precedence first:
- built-in defaults
- YAML config file (`--config PATH`, else `~/.boson.yaml` when present)
- environment variables (`BOSON_PORT`, `BOSON_HOST`, `BOSON_BUILD_DIR`)

Command line flags are applied on top by `cli.py`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_CONFIG_NAME = ".boson.yaml"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class RunOptions:
    """How the application binary is launched and which directories are watched."""

    port: int = 3000
    host: str = "127.0.0.1"
    watch: bool = False
    build_first: bool = True
    watch_dirs: tuple[str, ...] = ("src", "include")


@dataclass(frozen=True)
class BuildOptions:
    """CMake build settings."""

    build_dir: str = "build"
    release: bool = False
    cmake_options: tuple[str, ...] = ()

    @property
    def build_type(self) -> str:
        return "Release" if self.release else "Debug"


@dataclass(frozen=True)
class WatchTimings:
    """Timing knobs for watch mode, in seconds."""

    debounce: float = 0.3
    stop_timeout: float = 2.0
    settle_delay: float = 0.5


@dataclass(frozen=True)
class CliConfig:
    run: RunOptions = field(default_factory=RunOptions)
    build: BuildOptions = field(default_factory=BuildOptions)
    watch: WatchTimings = field(default_factory=WatchTimings)
    source: Path | None = None


def default_config_path() -> Path:
    return Path.home() / DEFAULT_CONFIG_NAME


def _section(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    raw = data.get(key) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"`{key}` must be an object/mapping when provided.")
    return raw


def _port(value: Any, origin: str) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{origin} must be an integer, got {value!r}") from e
    if not 1 <= port <= 65535:
        raise ConfigError(f"{origin} must be between 1 and 65535, got {port}")
    return port


def _seconds(value: Any, origin: str) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{origin} must be a number of seconds, got {value!r}") from e
    if seconds < 0:
        raise ConfigError(f"{origin} must not be negative, got {seconds}")
    return seconds


def _str_list(value: Any, origin: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"{origin} must be a list of strings.")
    return tuple(str(v).strip() for v in value if str(v).strip())


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must be a mapping/object at the top level.")
    return data


def parse_config(data: Mapping[str, Any], *, source: Path | None = None) -> CliConfig:
    """
    Build a `CliConfig` from an already-loaded mapping (the YAML document).

    Unknown keys are ignored so newer config files keep working with older CLIs.
    """
    run_raw = _section(data, "run")
    build_raw = _section(data, "build")
    watch_raw = _section(data, "watch")

    run = RunOptions()
    if "port" in run_raw:
        run = replace(run, port=_port(run_raw["port"], "run.port"))
    if run_raw.get("host"):
        run = replace(run, host=str(run_raw["host"]).strip())
    if "watch_dirs" in run_raw:
        run = replace(run, watch_dirs=_str_list(run_raw["watch_dirs"], "run.watch_dirs"))

    build = BuildOptions()
    if build_raw.get("dir"):
        build = replace(build, build_dir=str(build_raw["dir"]).strip())
    if "release" in build_raw:
        build = replace(build, release=bool(build_raw["release"]))
    if "cmake_options" in build_raw:
        build = replace(build, cmake_options=_str_list(build_raw["cmake_options"], "build.cmake_options"))

    watch = WatchTimings()
    for name in ("debounce", "stop_timeout", "settle_delay"):
        if name in watch_raw:
            watch = replace(watch, **{name: _seconds(watch_raw[name], f"watch.{name}")})

    return CliConfig(run=run, build=build, watch=watch, source=source)


def apply_env(config: CliConfig, environ: Mapping[str, str] | None = None) -> CliConfig:
    env = os.environ if environ is None else environ
    run = config.run
    build = config.build
    if env.get("BOSON_PORT"):
        run = replace(run, port=_port(env["BOSON_PORT"], "BOSON_PORT"))
    if env.get("BOSON_HOST"):
        run = replace(run, host=env["BOSON_HOST"].strip())
    if env.get("BOSON_BUILD_DIR"):
        build = replace(build, build_dir=env["BOSON_BUILD_DIR"].strip())
    return replace(config, run=run, build=build)


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> CliConfig:
    """
    Load the CLI configuration.

    - An explicit `config_path` must exist.
    - Without one, `~/.boson.yaml` is read if present; otherwise defaults are used.
    - Environment overrides are applied last.
    """
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file does not exist: {path}")
        config = parse_config(_read_yaml(path), source=path)
    else:
        path = default_config_path()
        config = parse_config(_read_yaml(path), source=path) if path.is_file() else CliConfig()

    return apply_env(config, environ)
