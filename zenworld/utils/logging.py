"""
Unified logging for zenworld.

Prints to the console and optionally mirrors every message to a log file.
Warnings and errors are tracked so tools can print an end-of-run summary.

Usage:
    from zenworld.utils import log, logWarning, logError, logDebug, init_logging, print_summary

    # Optional, only needed to mirror output into a file:
    init_logging(Path("inspect.log"))

    log("Parsing world...")                   # Info - progress and results
    logWarning("object not fully parsed")     # Recoverable problem in the input
    logError("world could not be parsed")     # Fatal problem
    logDebug("parsing object [VobTree % 0 0]")  # Only written to the log file

    print_summary()  # Shows warning/error counts
"""

import sys
import atexit
from pathlib import Path
from datetime import datetime
from typing import List, Optional, Tuple


# ANSI color codes
class Colors:
    YELLOW = '\033[93m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    BOLD = '\033[1m'
    RESET = '\033[0m'


# Module state
_log_file = None
_log_path: Optional[Path] = None
_initialized = False
_warnings: List[str] = []
_errors: List[str] = []


def init_logging(log_path: Optional[Path] = None):
    """
    Initialize logging. Resets warning and error tracking.

    Args:
        log_path: Path to a log file to mirror output into. Console only if None.
    """
    global _log_file, _log_path, _initialized, _warnings, _errors

    if _initialized:
        close_logging()

    _warnings = []
    _errors = []
    _initialized = True

    if log_path is None:
        return

    _log_path = Path(log_path)
    _log_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        _log_file = open(_log_path, 'w', encoding='utf-8')

        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        _log_file.write(f"Started: {timestamp}\n")
        _log_file.write("=" * 70 + "\n\n")
        _log_file.flush()

        atexit.register(close_logging)

    except OSError as e:
        print(f"Warning: Could not open log file {_log_path}: {e}", file=sys.stderr)
        _log_file = None


def close_logging():
    """Close the log file."""
    global _log_file, _initialized

    if _log_file is not None:
        try:
            timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
            _log_file.write(f"\n{'=' * 70}\n")
            _log_file.write(f"Finished: {timestamp}\n")
            _log_file.close()
        except OSError:
            pass
        _log_file = None

    _initialized = False


def _print_messages(title: str, messages: List[str], color: str):
    """Print one block of the summary, e.g. all collected warnings."""
    if not messages:
        return

    print(f"\n{color}{Colors.BOLD}{title} ({len(messages)}):{Colors.RESET}")
    _write_to_file(f"\n{title} ({len(messages)}):")
    for message in messages:
        print(f"  {color}- {message}{Colors.RESET}")
        _write_to_file(f"  - {message}")


def _format_count(count: int, noun: str, color: str) -> str:
    if count == 0:
        return f"{Colors.GREEN}0 {noun}s{Colors.RESET}"
    return f"{color}{Colors.BOLD}{count} {noun}(s){Colors.RESET}"


def print_summary():
    """
    Print every collected error and warning followed by their counts.
    """
    log("\n" + "=" * 70)
    log("SUMMARY")
    log("=" * 70)

    _print_messages("Errors", _errors, Colors.RED)
    _print_messages("Warnings", _warnings, Colors.YELLOW)

    print()
    print(f"{_format_count(len(_errors), 'Error', Colors.RED)} | "
          f"{_format_count(len(_warnings), 'Warning', Colors.YELLOW)}")
    _write_to_file(f"\n{len(_errors)} Error(s) | {len(_warnings)} Warning(s)")


def get_counts() -> Tuple[int, int]:
    """Return (error_count, warning_count)."""
    return len(_errors), len(_warnings)


def _write_to_file(msg: str, end: str = "\n"):
    if _log_file is not None:
        try:
            _log_file.write(msg + end)
            _log_file.flush()
        except OSError:
            pass


def _emit(text: str, end: str, color: Optional[str] = None, stream=None):
    """Print to the console (colored) and mirror the plain text to the log file."""
    if not _initialized:
        init_logging()

    console = text if color is None else f"{color}{text}{Colors.RESET}"
    print(console, end=end, file=stream or sys.stdout)
    _write_to_file(text, end)


def log(msg: str = "", end: str = "\n"):
    """Log an info message to both console and file."""
    _emit(msg, end)


def logWarning(msg: str, end: str = "\n"):
    """
    Log a warning. Warnings mark input that was only partially understood;
    parsing goes on. Shown in yellow and counted for the summary.
    """
    _emit(f"Warning: {msg}", end, Colors.YELLOW)
    _warnings.append(msg)


def logError(msg: str, end: str = "\n"):
    """
    Log an error to stderr. Errors mark input that could not be parsed at all.
    Shown in red and counted for the summary.
    """
    _emit(f"ERROR: {msg}", end, Colors.RED, sys.stderr)
    _errors.append(msg)


def logDebug(msg: str, end: str = "\n"):
    """Log a debug trace. Only written to the log file."""
    if not _initialized:
        init_logging()

    _write_to_file(f"[DEBUG] {msg}", end)
