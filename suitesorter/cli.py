"""Command line for suitesorter.

Usage:
    suitesorter plan ./project                 # dry run, prints the plan
    suitesorter plan ./project --json          # plan as JSON
    suitesorter apply ./project --rules r.json # move files (asks first)
    suitesorter undo ./project                 # revert the newest batch
    suitesorter batches ./project              # list journaled batches
    suitesorter rules                          # show the effective rule table
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from suitesorter.classifier import RuleSet
from suitesorter.errors import SuiteSorterError
from suitesorter.logger import MoveLogger
from suitesorter.logging_setup import setup_logging
from suitesorter.models import ApplyReport
from suitesorter.pipeline import apply_plan, build_plan
from suitesorter.report import plan_to_dict, render_apply, render_plan, render_results
from suitesorter.undo import UndoManager
from suitesorter.utils import ensure_path

EXIT_FAILED = 1
EXIT_INVALID = 2

app = typer.Typer(
    name="suitesorter",
    help="Reorganize a sprint-based test suite into unit/integration/e2e folders.",
    no_args_is_help=True,
)
console = Console()


def _root_arg():
    return typer.Argument(..., help="Project root (the folder that contains the tests folder)")


def _rules_opt():
    return typer.Option(
        None, "--rules", "-r", envvar="SUITESORTER_RULES",
        help="JSON rule table; its rules are tried before the built-in ones",
    )


def _tests_dir_opt():
    return typer.Option("tests", "--tests-dir", help="Tests folder, relative to the root")


def _fail(err: SuiteSorterError) -> typer.Exit:
    console.print(f"[red]{err.code}:[/red] {escape(str(err))}", highlight=False)
    return typer.Exit(EXIT_INVALID)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr")) -> None:
    setup_logging("DEBUG" if verbose else None)


@app.command("plan")
def cmd_plan(
    root: Path = _root_arg(),
    rules: Optional[Path] = _rules_opt(),
    tests_dir: str = _tests_dir_opt(),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
    no_scaffold: bool = typer.Option(False, "--no-scaffold", help="Do not plan __init__.py/conftest.py files"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Also list files that stay in place"),
) -> None:
    """Dry run: show where every test file would go. Never touches the filesystem."""
    try:
        plan = build_plan(root.expanduser().resolve(), rules, tests_dir, scaffold=not no_scaffold)
    except SuiteSorterError as e:
        raise _fail(e)

    if as_json:
        typer.echo(json.dumps(plan_to_dict(plan), indent=2))
    else:
        render_plan(plan, console, show_in_place=show_all)


@app.command("apply")
def cmd_apply(
    root: Path = _root_arg(),
    rules: Optional[Path] = _rules_opt(),
    tests_dir: str = _tests_dir_opt(),
    no_scaffold: bool = typer.Option(False, "--no-scaffold", help="Do not create __init__.py/conftest.py files"),
    keep_empty_dirs: bool = typer.Option(False, "--keep-empty-dirs", help="Leave emptied source folders in place"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Move the files. Failed moves are reported one by one; the rest still run."""
    try:
        plan = build_plan(root.expanduser().resolve(), rules, tests_dir, scaffold=not no_scaffold)
    except SuiteSorterError as e:
        raise _fail(e)

    render_plan(plan, console)
    if not plan.pending():
        console.print("Nothing to move.")
        report = ApplyReport(skipped=plan.held_back())
    else:
        if not yes and not typer.confirm("Proceed with actual move?"):
            console.print("Aborted (dry-run only).")
            raise typer.Exit(0)
        report = apply_plan(plan, tests_dir=tests_dir, prune_empty=not keep_empty_dirs)

    render_apply(report, console)
    if not report.ok:
        raise typer.Exit(EXIT_FAILED)


@app.command("undo")
def cmd_undo(
    root: Path = _root_arg(),
    batch: Optional[str] = typer.Option(None, "--batch", "-b", help="Batch ID (default: newest)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only show what would be restored"),
) -> None:
    """Revert a batch written by 'apply'."""
    try:
        root = ensure_path(str(root))
    except SuiteSorterError as e:
        raise _fail(e)
    logger = MoveLogger(root)
    batches = logger.list_batches()
    if not batches:
        console.print("No batches found.")
        raise typer.Exit(EXIT_FAILED)
    batch_id = batch or batches[0]
    if batch_id not in batches:
        console.print(f"[red]Unknown batch:[/red] {escape(batch_id)}")
        raise typer.Exit(EXIT_INVALID)

    results = UndoManager(root, logger, dry_run=dry_run).undo_batch(batch_id)
    title = "Undo dry run" if dry_run else f"Undo of batch {batch_id}"
    render_results(results, console, title)
    failed = [r for r in results if r.failed]
    if not dry_run:
        performed = sum(1 for r in results if r.performed)
        console.print(f"Undo complete. {performed} actions reverted.")
    if failed:
        console.print(f"[bold red]Failed to revert ({len(failed)}):[/bold red]")
        for r in failed:
            console.print(escape(f"  {r.src.as_posix()}: {r.reason}"), highlight=False)
        raise typer.Exit(EXIT_FAILED)


@app.command("batches")
def cmd_batches(root: Path = _root_arg()) -> None:
    """List journaled batches, newest first."""
    try:
        batches = MoveLogger(ensure_path(str(root))).list_batches()
    except SuiteSorterError as e:
        raise _fail(e)
    if not batches:
        console.print("No batches found.")
        return
    for i, b in enumerate(batches, 1):
        console.print(f"{i}. {b}")


@app.command("rules")
def cmd_rules(rules: Optional[Path] = _rules_opt(), tests_dir: str = _tests_dir_opt()) -> None:
    """Show the effective rule table in evaluation order (first match wins)."""
    try:
        rule_set = RuleSet(rules, tests_dir=tests_dir)
    except SuiteSorterError as e:
        raise _fail(e)

    table = Table(title="Classification rules", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Pattern", style="cyan", overflow="fold")
    table.add_column("Category", no_wrap=True)
    table.add_column("Destination", overflow="fold")
    for i, r in enumerate(rule_set, 1):
        table.add_row(str(i), escape(r.pattern), r.category.value, escape(r.destination))
    console.print(table, highlight=False)


if __name__ == "__main__":
    app()
