"""
cli.py

Responsibility: CLI entrypoint for boson-cli.

Commands:
- `run`: build if needed, then launch the application (or watch + restart with --watch)
- `build`: configure and build with CMake
- `generate`: render a component (controller, model, ...) into the project
- `debug templates`: show where templates are loaded from and which exist
- `version`: print version information

This module orchestrates; the work lives in:
- Configuration: `config.py`
- Project detection / build / launch: `project.py`
- Component rendering: `renderer.py`
- Watch mode: `supervisor.py`
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from dataclasses import replace
from pathlib import Path

from boson_cli import BUILD_DATE, GIT_COMMIT, __version__
from boson_cli.config import CliConfig, ConfigError, load_config
from boson_cli.console import console, error, fail, header, item, ok, print_commands, print_logo, setup_logging
from boson_cli.project import (
    ProjectError,
    app_args,
    build_project,
    find_executable,
    is_boson_project,
    launch,
)
from boson_cli.renderer import COMPONENTS, TEMPLATES_DIR, RenderError, render_component, template_path
from boson_cli.supervisor import watch_and_reload
from boson_cli.watcher import WatchError

logger = logging.getLogger(__name__)

PROJECT_URL = "https://github.com/S1D007/boson"


class CLIError(RuntimeError):
    pass


def _require_project(project_dir: Path) -> None:
    if not is_boson_project(project_dir):
        fail("Not in a Boson project directory")
        raise CLIError(
            "This command must be run from a Boson project directory "
            "(a directory with a CMakeLists.txt that uses Boson)"
        )


def _apply_overrides(args: argparse.Namespace, config: CliConfig) -> CliConfig:
    # CLI flags win over config file and environment.
    run = config.run
    if getattr(args, "port", None) is not None:
        run = replace(run, port=args.port)
    if getattr(args, "host", None):
        run = replace(run, host=args.host)
    if getattr(args, "watch", None):
        run = replace(run, watch=True)
    if getattr(args, "build_first", None) is not None:
        run = replace(run, build_first=args.build_first)

    build = config.build
    if getattr(args, "release", None):
        build = replace(build, release=True)
    if getattr(args, "build_dir", None):
        build = replace(build, build_dir=args.build_dir)
    if getattr(args, "cmake_options", None):
        build = replace(build, cmake_options=build.cmake_options + tuple(args.cmake_options))

    return replace(config, run=run, build=build)


def _build_with_status(project_dir: Path, config: CliConfig) -> None:
    header("🔨 BUILDING APPLICATION")
    started = time.monotonic()
    try:
        build_project(project_dir, config.build)
    except ProjectError:
        fail("Failed to build project")
        raise
    ok(f"Project built successfully ({time.monotonic() - started:.2f}s)")
    console.print()


def run_cmd(args: argparse.Namespace, config: CliConfig) -> int:
    config = _apply_overrides(args, config)
    opts = config.run

    print_logo()
    header("🚀 RUNNING BOSON APPLICATION")
    console.print()

    project_dir = Path.cwd()
    _require_project(project_dir)

    header("⚙️  CONFIGURATION")
    item("Host", opts.host)
    item("Port", opts.port)
    item("Watch mode", opts.watch)
    item("Directory", project_dir)
    console.print()

    if opts.build_first or find_executable(project_dir, config.build.build_dir) is None:
        _build_with_status(project_dir, config)

    executable = find_executable(project_dir, config.build.build_dir)
    if executable is None:
        fail("Could not find executable")
        raise CLIError("No executable was found after building. Check the build logs for compilation errors.")

    header("▶️  STARTING APPLICATION")
    if opts.watch:
        console.print()
        header("👀 WATCH MODE ENABLED")
        console.print("  File changes will automatically rebuild and restart the application")
        console.print(f"  Watching: {', '.join(opts.watch_dirs)}", markup=False)
        console.print()
        return watch_and_reload(
            project_dir,
            executable,
            run_options=opts,
            build_options=config.build,
            timings=config.watch,
        )

    try:
        proc = launch(executable, app_args(opts.port, opts.host), cwd=project_dir)
    except OSError as e:
        fail("Failed to start application")
        raise CLIError(str(e)) from e
    ok("Application started successfully")
    console.print()
    console.print("💻 APPLICATION IS RUNNING", style="bold green")
    console.print(f"  🔗 URL: [bold]http://{opts.host}:{opts.port}[/bold]")
    console.print()
    console.print("  Press Ctrl+C to stop the application")
    console.print()

    try:
        code = proc.wait()
    except KeyboardInterrupt:
        if proc.poll() is None:
            proc.terminate()
        proc.wait()
        console.print()
        console.print("  [yellow]⚠️[/yellow] Application terminated")
        return 0

    if code != 0:
        fail("Application terminated unexpectedly")
        raise CLIError(f"application exited with status {code}")
    return 0


def build_cmd(args: argparse.Namespace, config: CliConfig) -> int:
    config = _apply_overrides(args, config)
    project_dir = Path.cwd()
    _require_project(project_dir)

    console.print(f"[cyan]ℹ[/cyan] Building Boson application ({config.build.build_type})...")
    build_project(project_dir, config.build)
    console.print("✓ Build completed successfully!", style="bold green")

    executable = find_executable(project_dir, config.build.build_dir)
    if executable is not None:
        console.print()
        console.print(f"Executable: [cyan]{executable}[/cyan]")
        console.print()
        console.print("Run your application with:")
        console.print("  [cyan]boson run[/cyan]")
    return 0


def generate_cmd(args: argparse.Namespace, config: CliConfig) -> int:
    print_logo()
    header(f"🔨 GENERATE A {args.component_type.upper()}")
    console.print()

    project_dir = Path(args.dir).resolve()
    header("🔧 GENERATING COMPONENT")
    item("Type", args.component_type)
    item("Name", args.name)
    item("Directory", project_dir)
    console.print()

    try:
        result = render_component(
            component_type=args.component_type,
            name=args.name,
            project_dir=project_dir,
            templates_dir=args.templates_dir,
        )
    except RenderError:
        fail(f"Failed to generate {args.component_type}")
        raise
    ok(f"{args.component_type.capitalize()} files generated successfully")
    console.print()
    console.print(f"✨ {args.component_type.upper()} GENERATED SUCCESSFULLY!", style="bold green")
    console.print()
    header(f"📁 {args.component_type.upper()} LOCATION")
    console.print(f"  • {result.path}", style="bold cyan", markup=False)
    console.print()
    return 0


def debug_templates_cmd(args: argparse.Namespace, config: CliConfig) -> int:
    root = Path(args.templates_dir).resolve() if args.templates_dir else TEMPLATES_DIR
    console.print("Boson CLI Template Diagnostics", style="cyan")
    console.print("============================")
    console.print(f"Executable path:  {sys.argv[0]}", markup=False)
    console.print(f"Template root:    {root}", markup=False)
    console.print()
    console.print("Component Templates:", style="cyan")
    for component_type in COMPONENTS:
        status = "[green]found[/green]" if template_path(component_type, root).is_file() else "[red]not found[/red]"
        console.print(f"  {component_type}: {status}")
    return 0


def version_cmd(args: argparse.Namespace, config: CliConfig) -> int:
    console.print("Boson CLI Version Information:")
    console.print("----------------------------")
    console.print(f"Version:    [cyan]{__version__}[/cyan]")
    console.print(f"Built:      [cyan]{BUILD_DATE}[/cyan]")
    console.print(f"Git commit: [cyan]{GIT_COMMIT}[/cyan]")
    console.print("----------------------------")
    console.print("Boson Framework CLI is an open source project")
    console.print(PROJECT_URL)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="boson", description="Boson CLI - command line tooling for the Boson Framework")
    p.add_argument("--config", default=None, help="Config file (default: ~/.boson.yaml)")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    sub = p.add_subparsers(dest="command")

    r = sub.add_parser("run", help="Run a Boson application")
    r.add_argument("-w", "--watch", action="store_true", help="Watch for file changes and automatically rebuild")
    r.add_argument(
        "-b",
        "--build",
        dest="build_first",
        action="store_true",
        default=None,
        help="Build the application before running (default: enabled)",
    )
    r.add_argument(
        "--no-build",
        dest="build_first",
        action="store_false",
        help="Only build when no executable exists",
    )
    r.add_argument("-p", "--port", type=int, default=None, help="Port to run the application on (default: 3000)")
    r.add_argument("-H", "--host", default=None, help="Host to run the application on (default: 127.0.0.1)")
    r.set_defaults(func=run_cmd)

    b = sub.add_parser("build", help="Build a Boson application")
    b.add_argument("-r", "--release", action="store_true", help="Build in release mode")
    b.add_argument("-d", "--dir", dest="build_dir", default=None, help="Directory to build in (default: build)")
    b.add_argument(
        "--cmake-option",
        dest="cmake_options",
        action="append",
        default=[],
        help="Additional CMake option (repeatable)",
    )
    b.set_defaults(func=build_cmd)

    g = sub.add_parser("generate", aliases=["g"], help="Generate a Boson component")
    g.add_argument("component_type", choices=list(COMPONENTS), help="Component type")
    g.add_argument("name", help="Component name (snake_case, e.g. user_auth)")
    g.add_argument("--dir", default=os.curdir, help="Project directory (default: current directory)")
    g.add_argument("--templates-dir", default=None, help="Templates directory (default: bundled templates)")
    g.set_defaults(func=generate_cmd)

    d = sub.add_parser("debug", help="Diagnostics for Boson CLI")
    dsub = d.add_subparsers(dest="debug_command", required=True)
    dt = dsub.add_parser("templates", help="Show template path and availability information")
    dt.add_argument("--templates-dir", default=None, help="Templates directory (default: bundled templates)")
    dt.set_defaults(func=debug_templates_cmd)

    v = sub.add_parser("version", help="Print version information")
    v.set_defaults(func=version_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    if args.command is None:
        print_logo()
        print_commands()
        return 0

    try:
        config = load_config(args.config)
        if config.source is not None:
            logger.debug("Using config file: %s", config.source)
        return int(args.func(args, config))
    except (CLIError, ConfigError, ProjectError, RenderError, WatchError) as e:
        console.print()
        error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
