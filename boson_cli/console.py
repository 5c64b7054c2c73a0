"""
console.py

Responsibility: Terminal output shared by all commands.

- `console`: a single rich Console for banners, headers and status lines.
- `setup_logging`: route stdlib logging through rich so library modules
  (project, watcher, supervisor) surface their state transitions as status lines.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

console = Console(highlight=False)

LOGO = r"""
    ____
   / __ )____  _________  ____
  / __  / __ \/ ___/ __ \/ __ \
 / /_/ / /_/ (__  ) /_/ / / / /
/_____/\____/____/\____/_/ /_/
"""

COMMANDS: list[tuple[str, str]] = [
    ("run", "Run the Boson project"),
    ("build", "Build the Boson project"),
    ("generate", "Generate project components"),
    ("debug", "Show diagnostics for templates and paths"),
    ("version", "Display version information"),
]


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(console=console, show_time=False, show_path=verbose, markup=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


def print_logo() -> None:
    console.print(LOGO, style="bold cyan")
    console.print("High-Performance C++ Web Framework", style="bold cyan")
    console.print()


def print_commands() -> None:
    console.print("AVAILABLE COMMANDS:", style="bold")
    console.print()
    for name, desc in COMMANDS:
        console.print(f"  [cyan]{name:<10}[/cyan] {desc}")
    console.print()
    console.print('Use "boson [command] --help" for more information about a command.', markup=False)


def header(text: str) -> None:
    console.print(text, style="bold cyan")


def item(label: str, value: object) -> None:
    console.print(f"  • {label}: [cyan]{escape(str(value))}[/cyan]")


def ok(message: str) -> None:
    console.print(f"  [green]✓[/green] {escape(message)}")


def fail(message: str) -> None:
    console.print(f"  [red]✗[/red] {escape(message)}")


def error(message: str) -> None:
    console.print(f"Error: {message}", style="red", markup=False)
