"""Console output formatting utilities for juche."""

from __future__ import annotations

import shlex
import sys
from typing import Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, quiet: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            quiet: If True, don't report up-to-date steps
        """
        self.debug = debug
        self.quiet = quiet

    def format_command(self, argv: Sequence[str]) -> str:
        return shlex.join(argv)

    def print_build_started(self, script: str, target_count: int) -> None:
        """Print build start information."""
        print("\nBUILD STARTED")
        print(f"Script: {script}")
        print(f"Targets: {target_count}")
        print()

    def print_command(self, argv: Sequence[str]) -> None:
        """Print the fully expanded command line before it runs."""
        print(self.format_command(argv))

    def print_up_to_date(self, name: str) -> None:
        if not self.quiet:
            print(f"UP TO DATE: {name}")

    def print_step_blocked(self, name: str, dependency: str) -> None:
        print(f"BLOCKED: {name} (dependency failed: {dependency})")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step output
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
        """
        print(f"STEP FAILED: {name}", file=sys.stderr)
        if exit_code is not None:
            print(f"Exit code: {exit_code}", file=sys.stderr)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)
        else:
            # first line of the error is enough without --debug
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}", file=sys.stderr)

    def print_plan_step(self, index: int, name: str, command: str, stale: bool) -> None:
        """Print one line of a build plan."""
        marker = "stale" if stale else "fresh"
        print(f"  {index:>3}. [{marker}] {name} ({command})")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for name, status in results.items():
            print(f"  {name}: {status.upper()}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
