"""Configurable CLI output.

Messages go through an `Output` with a verbosity level and a formatter (text,
JSON or compact). Synthesized code is shown with `code()`, which highlights it
with rich when writing text to a terminal.

Usage:
    from typesynth.output import configure_output

    output = configure_output(verbosity=Verbosity.VERBOSE)
    output.step("Synthesizing parse_url")
    output.code(source)
    output.data(stats)
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import IO, Any

from rich.console import Console
from rich.syntax import Syntax

# =============================================================================
# Verbosity Levels
# =============================================================================


class Verbosity(IntEnum):
    """Output verbosity levels."""

    QUIET = 0  # Only errors
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


@dataclass
class OutputStyle:
    """Styling configuration for output."""

    use_colors: bool = True
    indent_size: int = 2
    max_width: int = 100
    theme: str = "monokai"

    colors: dict[str, str] = field(
        default_factory=lambda: {
            "reset": "\033[0m",
            "bold": "\033[1m",
            "dim": "\033[2m",
            "red": "\033[31m",
            "green": "\033[32m",
            "yellow": "\033[33m",
            "blue": "\033[34m",
            "cyan": "\033[36m",
        }
    )

    prefixes: dict[str, str] = field(
        default_factory=lambda: {
            "error": "X",
            "warning": "!",
            "success": "+",
            "info": "*",
            "debug": "#",
            "step": ">",
        }
    )


# =============================================================================
# Output Formatters
# =============================================================================


class OutputFormatter:
    """Base class for output formatters."""

    def format_message(self, level: str, message: str, style: OutputStyle, use_tty: bool) -> str:
        return message

    def format_data(self, data: Any, style: OutputStyle) -> str:
        return str(data)


class TextFormatter(OutputFormatter):
    """Plain text with a level prefix and optional colors."""

    LEVEL_COLORS = {
        "error": "red",
        "warning": "yellow",
        "success": "green",
        "info": "blue",
        "debug": "dim",
        "step": "cyan",
    }

    def format_message(self, level: str, message: str, style: OutputStyle, use_tty: bool) -> str:
        mark = style.prefixes.get(level, "")
        text = f"[{mark}] {message}" if mark else message
        if style.use_colors and use_tty and level in self.LEVEL_COLORS:
            color = style.colors[self.LEVEL_COLORS[level]]
            return f"{color}{text}{style.colors['reset']}"
        return text

    def format_data(self, data: Any, style: OutputStyle) -> str:
        return "\n".join(self._lines(data, style, 0))

    def _lines(self, data: Any, style: OutputStyle, indent: int) -> list[str]:
        prefix = " " * (indent * style.indent_size)
        if isinstance(data, dict):
            lines = []
            for key, value in data.items():
                if isinstance(value, (dict, list)) and value:
                    lines.append(f"{prefix}{key}:")
                    lines.extend(self._lines(value, style, indent + 1))
                else:
                    lines.append(f"{prefix}{key}: {value}")
            return lines
        if isinstance(data, list):
            lines = []
            for item in data:
                if isinstance(item, dict):
                    lines.append(f"{prefix}-")
                    lines.extend(self._lines(item, style, indent + 1))
                else:
                    lines.append(f"{prefix}- {item}")
            return lines
        return [f"{prefix}{data}"]


class JSONFormatter(OutputFormatter):
    """JSON output formatter."""

    def format_message(self, level: str, message: str, style: OutputStyle, use_tty: bool) -> str:
        return json.dumps({"level": level, "message": message})

    def format_data(self, data: Any, style: OutputStyle) -> str:
        return json.dumps(data, indent=2, default=str)


class CompactFormatter(OutputFormatter):
    """Compact single-line formatter."""

    def format_message(self, level: str, message: str, style: OutputStyle, use_tty: bool) -> str:
        level_char = level[0].upper() if level else " "
        return f"[{level_char}] {message}"

    def format_data(self, data: Any, style: OutputStyle) -> str:
        if isinstance(data, (dict, list)):
            return json.dumps(data, separators=(",", ":"), default=str)
        return str(data)


# =============================================================================
# Output Class
# =============================================================================


class Output:
    """Configurable output for CLI commands."""

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.NORMAL,
        style: OutputStyle | None = None,
        formatter: OutputFormatter | None = None,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
    ) -> None:
        self.verbosity = verbosity
        self.style = style or OutputStyle()
        self.formatter = formatter or TextFormatter()
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def set_verbosity(self, verbosity: Verbosity) -> None:
        self.verbosity = verbosity

    def use_json(self) -> None:
        """Switch to JSON output format."""
        self.formatter = JSONFormatter()
        self.style.use_colors = False

    def use_compact(self) -> None:
        self.formatter = CompactFormatter()

    @property
    def is_text(self) -> bool:
        return type(self.formatter) is TextFormatter

    # -------------------------------------------------------------------------
    # Output Methods
    # -------------------------------------------------------------------------

    def write(
        self,
        message: str,
        level: str = "info",
        min_verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        """Write a message if verbosity allows."""
        if self.verbosity < min_verbosity:
            return
        stream = self.stderr if level == "error" else self.stdout
        formatted = self.formatter.format_message(level, message, self.style, stream.isatty())
        stream.write(f"{formatted}\n")
        stream.flush()

    def error(self, message: str) -> None:
        """Output an error message (shown even when quiet)."""
        self.write(message, "error", Verbosity.QUIET)

    def warning(self, message: str) -> None:
        self.write(message, "warning")

    def success(self, message: str) -> None:
        self.write(message, "success")

    def info(self, message: str) -> None:
        self.write(message, "info")

    def step(self, message: str) -> None:
        self.write(message, "step")

    def verbose(self, message: str) -> None:
        self.write(message, "info", Verbosity.VERBOSE)

    def debug(self, message: str) -> None:
        self.write(message, "debug", Verbosity.DEBUG)

    def print(self, message: str) -> None:
        """Print raw message (no formatting)."""
        if self.verbosity >= Verbosity.NORMAL:
            self.stdout.write(f"{message}\n")
            self.stdout.flush()

    def data(self, data: Any, min_verbosity: Verbosity = Verbosity.NORMAL) -> None:
        """Output structured data."""
        if self.verbosity < min_verbosity:
            return
        self.stdout.write(f"{self.formatter.format_data(data, self.style)}\n")
        self.stdout.flush()

    def code(self, source: str) -> None:
        """Output Python source, highlighted on a color terminal."""
        if self.verbosity < Verbosity.NORMAL:
            return
        if self.is_text and self.style.use_colors and self.stdout.isatty():
            console = Console(file=self.stdout, width=self.style.max_width)
            console.print(Syntax(source.rstrip("\n"), "python", theme=self.style.theme))
            return
        self.print(source.rstrip("\n"))

    def header(self, text: str) -> None:
        """Output a section header."""
        if self.verbosity < Verbosity.NORMAL:
            return
        if self.style.use_colors and self.stdout.isatty():
            bold = self.style.colors["bold"]
            reset = self.style.colors["reset"]
            self.stdout.write(f"\n{bold}{text}{reset}\n")
        else:
            self.stdout.write(f"\n{text}\n")
        self.stdout.write("-" * min(len(text), self.style.max_width) + "\n")
        self.stdout.flush()


# =============================================================================
# Global Output Instance
# =============================================================================

_output: Output | None = None


def get_output() -> Output:
    """Get the global output instance."""
    global _output
    if _output is None:
        _output = Output()
    return _output


def reset_output() -> None:
    """Drop the global output so the next get_output() builds a fresh one.

    Tests use this to pick up captured stdout/stderr.
    """
    global _output
    _output = None


def configure_output(
    verbosity: Verbosity | None = None,
    json_format: bool = False,
    compact: bool = False,
    no_color: bool = False,
) -> Output:
    """Configure the global output instance."""
    output = get_output()
    if verbosity is not None:
        output.set_verbosity(verbosity)
    if compact:
        output.use_compact()
    elif json_format:
        output.use_json()
    if no_color:
        output.style.use_colors = False
    return output
