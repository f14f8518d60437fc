from typing import Any, Dict, List

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import ApplyReport, MigrationPlan, MoveResult, MoveStatus

STATUS_STYLES = {
    MoveStatus.MOVE: "green",
    MoveStatus.IN_PLACE: "dim",
    MoveStatus.COLLISION: "bold red",
    MoveStatus.REVIEW: "yellow",
    MoveStatus.UNCLASSIFIED: "magenta",
}


def plan_table(plan: MigrationPlan, show_in_place: bool = False) -> Table:
    table = Table(title=f"Migration plan for {escape(str(plan.root))}", box=box.ROUNDED, show_lines=False)
    table.add_column("Source", style="cyan", overflow="fold")
    table.add_column("Destination", overflow="fold")
    table.add_column("Category", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    for m in plan.moves:
        if m.status is MoveStatus.IN_PLACE and not show_in_place:
            continue
        style = STATUS_STYLES[m.status]
        dest = m.destination.as_posix() if m.destination is not None else "-"
        table.add_row(escape(m.source.as_posix()), escape(dest), m.category.value, f"[{style}]{m.status.value}[/{style}]")
    return table


def counts_table(plan: MigrationPlan) -> Table:
    table = Table(title="Files per category", box=box.SIMPLE)
    table.add_column("Category", style="bold")
    table.add_column("Files", justify="right")
    for category, n in plan.counts_by_category().items():
        if n:
            table.add_row(category, str(n))
    table.add_row("total", str(len(plan.moves)), style="bold")
    return table


def render_plan(plan: MigrationPlan, console: Console, show_in_place: bool = False) -> None:
    console.print(plan_table(plan, show_in_place))
    console.print(counts_table(plan))

    if plan.directories:
        console.print(f"[bold]Folders to create:[/bold] {len(plan.directories)}")
    if plan.scaffolds:
        console.print("[bold]Scaffolding:[/bold]")
        for rel in plan.scaffolds:
            console.print(f"  + {escape(rel.as_posix())}")
    render_issues(plan, console)
    console.print(
        f"\n{len(plan.pending())} to move, {len(plan.held_back())} held back, "
        f"{sum(1 for m in plan.moves if m.status is MoveStatus.UNCLASSIFIED)} unclassified."
    )


def render_issues(plan: MigrationPlan, console: Console) -> None:
    if not plan.issues:
        return
    console.print(f"[bold yellow]Issues ({len(plan.issues)}):[/bold yellow]")
    for issue in plan.issues:
        colour = "yellow" if issue.code == "unclassified-file" else "red"
        console.print(f"  [{colour}]{issue.code}[/{colour}] {escape(issue.message)}", highlight=False)


def render_results(results: List[MoveResult], console: Console, title: str) -> None:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("From", style="cyan", overflow="fold")
    table.add_column("To", overflow="fold")
    table.add_column("Done", no_wrap=True)
    table.add_column("Note")
    for r in results:
        done = "yes" if r.performed else ("[red]failed[/red]" if r.failed else "no")
        table.add_row(escape(r.src.as_posix()), escape(r.dst.as_posix()), done, escape(r.reason))
    console.print(table)


def render_apply(report: ApplyReport, console: Console) -> None:
    console.print(f"[green]Moved {len(report.moved)} files.[/green]")
    if report.created_files:
        console.print(f"Created {len(report.created_files)} scaffold files.")
    if report.removed_dirs:
        console.print(f"Removed {len(report.removed_dirs)} emptied folders.")
    if report.batch_id:
        console.print(f"Batch ID: [bold]{report.batch_id}[/bold] (use 'undo' to revert)")

    if report.failures:
        console.print(f"[bold red]Failed moves ({len(report.failures)}):[/bold red]")
        for r in report.failures:
            console.print(escape(f"  {r.src.as_posix()} -> {r.dst.as_posix()}: {r.reason}"), highlight=False)
    if report.skipped:
        console.print(f"[bold yellow]Skipped, needs manual review ({len(report.skipped)}):[/bold yellow]")
        for m in report.skipped:
            console.print(escape(f"  {m.source.as_posix()} ({m.status.value})"), highlight=False)
    for rel, reason in report.errors:
        console.print(f"[red]  {escape(rel.as_posix())}: {escape(reason)}[/red]", highlight=False)


def plan_to_dict(plan: MigrationPlan) -> Dict[str, Any]:
    return {
        "root": str(plan.root),
        "moves": [
            {
                "source": m.source.as_posix(),
                "destination": m.destination.as_posix() if m.destination is not None else None,
                "category": m.category.value,
                "status": m.status.value,
            }
            for m in plan.moves
        ],
        "directories": [d.as_posix() for d in plan.directories],
        "scaffolds": [p.as_posix() for p in plan.scaffolds],
        "issues": [
            {"code": i.code, "message": i.message, "paths": [p.as_posix() for p in i.paths]}
            for i in plan.issues
        ],
        "counts": plan.counts_by_category(),
    }
