# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from juche.config import DEFAULT_SCRIPT, Settings, load_settings
from juche.dag import plan as plan_steps
from juche.runner import (
    Builder,
    BuildReport,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    load_build_script,
    select_targets,
)
from juche.ui.console import Console, get_console, set_console


def find_build_scripts(directory: str | Path = ".") -> list[Path]:
    """juche_build.py wins; otherwise every *_build.py in `directory`."""
    directory = Path(directory)
    preferred = directory / DEFAULT_SCRIPT
    if preferred.is_file():
        return [preferred]
    return sorted(p for p in directory.glob("*_build.py") if p.is_file())


def discover_script(script_arg: str | None) -> Path:
    """
    Resolve the build script to load.

    `script_arg` may name a file (".py" optional) or a directory to search.
    Without it the current directory is searched. Exits with status 1 when
    there is no single answer.
    """
    console = get_console()
    search_dir = Path(".")

    if script_arg:
        given = Path(script_arg)
        if given.is_dir():
            search_dir = given
        else:
            for candidate in (given, given.with_name(given.name + ".py")):
                if candidate.is_file():
                    return candidate
            console.print_error("Build script not found", f"No such file: {script_arg}")
            sys.exit(1)

    scripts = find_build_scripts(search_dir)
    if len(scripts) == 1:
        return scripts[0]

    if not scripts:
        console.print_error(
            "No build script found",
            f"Nothing matching {DEFAULT_SCRIPT} or *_build.py in {search_dir.resolve()}",
            suggestion="Pass one with --script or set JUCHE_SCRIPT.",
        )
    else:
        console.print_error(
            "Ambiguous build script",
            f"{len(scripts)} candidates and no {DEFAULT_SCRIPT}:",
            details=[str(s) for s in scripts],
            suggestion="Pick one with --script.",
        )
    sys.exit(1)


def _settings() -> Settings:
    ctx = click.get_current_context(silent=True)
    if ctx is not None and isinstance(ctx.find_root().obj, dict) and "settings" in ctx.find_root().obj:
        return ctx.find_root().obj["settings"]
    return load_settings()


def _default(name: str):
    # evaluated after the group callback has stored the settings
    return lambda: getattr(_settings(), name)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--quiet", is_flag=True, default=False, help="Don't report up-to-date steps")
@click.pass_context
def cli(ctx, debug, quiet):
    """juche: build steps described in plain Python."""
    try:
        settings = load_settings()
    except ValueError as e:
        Console().print_error("Invalid configuration", str(e))
        sys.exit(2)

    console = Console(debug=debug or settings.debug, quiet=quiet)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["debug"] = console.debug


@cli.command()
@click.argument("outputs", nargs=-1)
@click.option("--script", default=_default("script"), help=f"Build script path (defaults to {DEFAULT_SCRIPT} if present)")
@click.option("--keep-going/--fail-fast", default=_default("keep_going"), help="Keep building independent steps after a failure")
@click.option("--dry-run/--no-dry-run", default=_default("dry_run"), help="Print commands without running them")
@click.option("--memoize/--no-memoize", default=_default("memoize"), help="Evaluate shared dependencies once")
@click.pass_context
def build(ctx, outputs, script, keep_going, dry_run, memoize):
    """Build the script's targets (or only the given OUTPUTS)."""
    console = get_console()
    script_path = discover_script(script)

    try:
        roots = select_targets(load_build_script(script_path), outputs)
        console.print_build_started(script=script_path.name, target_count=len(roots))

        runner = RecordingCommandRunner() if dry_run else SubprocessCommandRunner()
        builder = Builder(
            runner=runner, console=console, keep_going=keep_going, memoize=memoize, dry_run=dry_run,
        )
        report: BuildReport = builder.build(*roots)

        console.print_results(report.statuses())

        if not report.ok:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.argument("outputs", nargs=-1)
@click.option("--script", default=_default("script"), help=f"Build script path (defaults to {DEFAULT_SCRIPT} if present)")
@click.option("--memoize/--no-memoize", default=_default("memoize"), help="Evaluate shared dependencies once")
@click.pass_context
def plan(ctx, outputs, script, memoize):
    """Show the evaluation order and which steps are stale, without running anything."""
    console = get_console()
    script_path = discover_script(script)

    try:
        roots = select_targets(load_build_script(script_path), outputs)
        order = plan_steps(roots, memoize=memoize)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_info(f"Plan for {script_path.name} ({len(order)} step(s)):")
    for i, step in enumerate(order, start=1):
        console.print_plan_step(i, step.label, step.command, step.is_stale())


if __name__ == "__main__":
    cli()
