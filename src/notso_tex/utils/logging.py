"""Colored logging and timing utilities for notso-tex."""

import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntEnum


# ANSI color codes
class Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"

    # Bright variants
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def _supports_color() -> bool:
    """Check if terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    if not sys.stdout.isatty():
        return False
    return True


_USE_COLOR = _supports_color()


def _c(color: str, text: str) -> str:
    """Apply color to text if supported."""
    if not _USE_COLOR:
        return text
    return f"{color}{text}{Colors.RESET}"


def bold(text: str) -> str:
    """Make text bold."""
    return _c(Colors.BOLD, text)


def dim(text: str) -> str:
    """Make text dim."""
    return _c(Colors.DIM, text)


def cyan(text: str) -> str:
    """Color text cyan."""
    return _c(Colors.CYAN, text)


def bright_green(text: str) -> str:
    """Color text bright green."""
    return _c(Colors.BRIGHT_GREEN, text)


def bright_yellow(text: str) -> str:
    """Color text bright yellow."""
    return _c(Colors.BRIGHT_YELLOW, text)


def bright_red(text: str) -> str:
    """Color text bright red."""
    return _c(Colors.BRIGHT_RED, text)


def bright_cyan(text: str) -> str:
    """Color text bright cyan."""
    return _c(Colors.BRIGHT_CYAN, text)


# Log level formatting
def log_info(msg: str) -> None:
    """Print info message."""
    print(f"  {cyan('INFO')}  {msg}")


def log_ok(msg: str) -> None:
    """Print success message."""
    print(f"    {bright_green('OK')}  {msg}")


def log_warn(msg: str) -> None:
    """Print warning message."""
    print(f"  {bright_yellow('WARN')}  {msg}")


def log_error(msg: str) -> None:
    """Print error message."""
    print(f" {bright_red('ERROR')}  {msg}")


def log_debug(msg: str) -> None:
    """Print debug message (dimmed)."""
    print(f" {dim('DEBUG')}  {dim(msg)}")


def log_timing(msg: str, seconds: float) -> None:
    """Print timing message with formatted duration."""
    time_str = format_duration(seconds)
    print(f"  {dim('TIME')}  {msg}: {bright_cyan(time_str)}")


def print_header(title: str, char: str = "=", width: int = 60) -> None:
    """Print a header with decorative borders."""
    border = char * width
    print(f"\n{cyan(border)}")
    print(f"  {bold(title)}")
    print(f"{cyan(border)}")


class Verbosity(IntEnum):
    """Logger thresholds, lowest is quietest."""

    SILENT = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4


class Logger:
    """Level-gated sink that forwards to the log_* printers.

    A document carries one of these so transforms can report per-texture
    progress without knowing how (or whether) it gets displayed.
    """

    def __init__(self, verbosity: Verbosity = Verbosity.INFO) -> None:
        self.verbosity = verbosity

    def debug(self, msg: str) -> None:
        if self.verbosity >= Verbosity.DEBUG:
            log_debug(msg)

    def info(self, msg: str) -> None:
        if self.verbosity >= Verbosity.INFO:
            log_info(msg)

    def warn(self, msg: str) -> None:
        if self.verbosity >= Verbosity.WARN:
            log_warn(msg)

    def error(self, msg: str) -> None:
        if self.verbosity >= Verbosity.ERROR:
            log_error(msg)


# Timing utilities
def format_duration(seconds: float) -> str:
    """Format seconds into human-readable duration."""
    if seconds < 0.001:
        return f"{seconds * 1000000:.0f}μs"
    elif seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


@dataclass
class TimingResult:
    """Result from a timed operation."""

    elapsed: float
    message: str


@contextmanager
def timed(description: str, print_on_exit: bool = True) -> Iterator[TimingResult]:
    """Context manager for timing operations.

    Usage:
        with timed("Compressing textures") as t:
            do_work()
        # Automatically prints timing on exit

        # Or capture without printing:
        with timed("Compressing", print_on_exit=False) as t:
            do_work()
        print(f"Took {t.elapsed}s")
    """
    result = TimingResult(elapsed=0.0, message=description)
    start = time.perf_counter()
    try:
        yield result
    finally:
        result.elapsed = time.perf_counter() - start
        if print_on_exit:
            log_timing(description, result.elapsed)


# Result formatting
def format_count(count: int, singular: str, plural: str | None = None) -> str:
    """Format count with proper singular/plural form."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count:,} {word}"


def format_bytes(size: int) -> str:
    """Format byte size in human-readable form."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / 1024 / 1024:.2f} MB"
    else:
        return f"{size / 1024 / 1024 / 1024:.2f} GB"
