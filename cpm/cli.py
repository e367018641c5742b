import json
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from . import drive
from .analysis import due_buckets, days_until_due, stage_distribution, task_stats
from .config import DEFAULT_STAGES, LOG_LEVEL, SNAPSHOT_FILE
from .domain import TASK_STATUSES, Project, Snapshot, Stage, Task
from .hierarchy import build_project_hierarchy
from .progress import render_tree, weighted_progress
from .schema import SchemaError

app = typer.Typer(help="Curriculum Progress Manager CLI")

FILE_HELP = "Snapshot file (YAML, or JSON by suffix)."


def load_snapshot(path: Path) -> Snapshot:
    try:
        return drive.load(path)
    except FileNotFoundError:
        typer.echo(f"File not found: {path}", err=True)
        raise typer.Exit(code=1)
    except SchemaError as e:
        typer.echo(f"Invalid snapshot: {e}", err=True)
        raise typer.Exit(code=1)


def check_status(status: str) -> str:
    if status not in TASK_STATUSES:
        raise typer.BadParameter(
            f"Unknown status '{status}'. Choose from: {', '.join(TASK_STATUSES)}"
        )
    return status


def parse_day(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected a YYYY-MM-DD date, got '{value}'")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    """Track curriculum task progress across grades, books and lessons."""
    logging.basicConfig(level=logging.DEBUG if verbose else LOG_LEVEL)


@app.command()
def init(
    project_name: str = typer.Option(None, help="Name of the project. Defaults to the current directory name."),
    project_id: str = typer.Option("1", help="Project id stored on new tasks."),
    file: Path = typer.Option(Path(SNAPSHOT_FILE), "--file", "-f", help=FILE_HELP),
):
    """Create a starter snapshot with the default stages."""
    if file.exists():
        raise typer.BadParameter(f"Snapshot already exists at {file.resolve()}")

    if project_name is None:
        project_name = Path('.').resolve().name

    snapshot = Snapshot(
        project=Project(id=project_id, name=project_name, status="active"),
        stages=[Stage(id=i, name=name, order_index=i) for i, name in enumerate(DEFAULT_STAGES, start=1)],
    )
    drive.save(snapshot, file)
    typer.echo(f"Initialised project '{project_name}' at {file.resolve()}")


@app.command("add-task")
def add_task(
    path: str = typer.Argument(..., help="Component path, e.g. 'G1 > U2 > L3'."),
    name: str = typer.Option(None, help="Task name."),
    stage: str = typer.Option(None, help="Stage id or name."),
    status: str = typer.Option("not-started", help="Initial status."),
    end_date: str = typer.Option(None, "--end-date", help="Due date (YYYY-MM-DD)."),
    assignee: List[str] = typer.Option(None, "--assignee", help="Assigned member id; repeatable."),
    level_type: str = typer.Option(None, "--level-type", help="Explicit type of the deepest path segment."),
    file: Path = typer.Option(Path(SNAPSHOT_FILE), "--file", "-f", help=FILE_HELP),
):
    """Append a task to the snapshot."""
    check_status(status)
    if end_date is not None:
        parse_day(end_date)
    snapshot = load_snapshot(file)

    stage_id = None
    if stage is not None:
        found = snapshot.find_stage(stage)
        if found is None:
            raise typer.BadParameter(f"Stage not found: {stage}")
        stage_id = found.id

    task = Task(
        id=snapshot.next_task_id(),
        component_path=path,
        status=status,
        name=name,
        stage_id=stage_id,
        project_id=snapshot.project.id if snapshot.project else None,
        assignees=list(assignee or []),
        end_date=end_date,
        level_type=level_type,
    )
    snapshot.add_task(task)
    drive.save(snapshot, file)
    typer.echo(f"Added task {task.id} at {path}")


@app.command("set-status")
def set_status(
    task_id: str,
    status: str,
    file: Path = typer.Option(Path(SNAPSHOT_FILE), "--file", "-f", help=FILE_HELP),
):
    """Change the status of a task."""
    check_status(status)
    snapshot = load_snapshot(file)
    try:
        task = snapshot.get_task(task_id)
    except KeyError:
        typer.echo(f"Task not found: {task_id}", err=True)
        raise typer.Exit(code=1)
    task.status = status
    drive.save(snapshot, file)
    typer.echo(f"Task {task_id} is now {status}")


@app.command()
def tree(
    file: Path = typer.Argument(Path(SNAPSHOT_FILE), help=FILE_HELP),
    project: str = typer.Option(None, help="Only include tasks of this project id."),
    stages: bool = typer.Option(False, "--stages", help="Show per-stage completion."),
):
    """Show the hierarchy with progress for every level."""
    snapshot = load_snapshot(file)
    roots = build_project_hierarchy(snapshot.tasks, snapshot.stages, project)
    if not roots:
        typer.echo("No tasks with a component path.")
        return
    typer.echo(render_tree(roots, show_stages=stages))


@app.command()
def progress(
    file: Path = typer.Argument(Path(SNAPSHOT_FILE), help=FILE_HELP),
    project: str = typer.Option(None, help="Only include tasks of this project id."),
):
    """Print the progress of each top-level entry."""
    snapshot = load_snapshot(file)
    roots = build_project_hierarchy(snapshot.tasks, snapshot.stages, project)
    for root in roots:
        typer.echo(f"{root.name}: {root.progress}%")
    if any(s.weight for s in snapshot.stages):
        tasks = snapshot.tasks_for_project(project)
        typer.echo(f"Weighted by stage: {weighted_progress(snapshot.stages, tasks)}%")


@app.command()
def validate(file: Path):
    """Check that a snapshot file is well formed."""
    snapshot = load_snapshot(file)
    typer.echo(f"{file} is valid: {len(snapshot.stages)} stages, {len(snapshot.tasks)} tasks")


@app.command()
def export(
    file: Path = typer.Argument(Path(SNAPSHOT_FILE), help=FILE_HELP),
    fmt: str = typer.Option("json", "--format", help="json or yaml."),
    output: Path = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout."),
    project: str = typer.Option(None, help="Only include tasks of this project id."),
):
    """Dump the computed hierarchy."""
    if fmt not in ("json", "yaml"):
        raise typer.BadParameter("format must be 'json' or 'yaml'")
    snapshot = load_snapshot(file)
    roots = build_project_hierarchy(snapshot.tasks, snapshot.stages, project)
    data = {"hierarchy": [r.to_dict() for r in roots]}
    text = json.dumps(data, indent=2) if fmt == "json" else yaml.dump(data, sort_keys=False)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {len(roots)} root nodes to {output}")


@app.command()
def overdue(
    file: Path = typer.Argument(Path(SNAPSHOT_FILE), help=FILE_HELP),
    today: str = typer.Option(None, help="Reference date (YYYY-MM-DD), defaults to today."),
):
    """List open tasks past their end date."""
    day = parse_day(today)
    snapshot = load_snapshot(file)
    late = due_buckets(snapshot.tasks, day).overdue
    if not late:
        typer.echo("No overdue tasks.")
        return
    for task in late:
        days = -days_until_due(task, day)
        label = task.name or task.component_path or ""
        typer.echo(f"#{task.id} {label} ({task.status}, {days} days overdue)")


@app.command()
def stats(
    file: Path = typer.Argument(Path(SNAPSHOT_FILE), help=FILE_HELP),
    today: str = typer.Option(None, help="Reference date (YYYY-MM-DD), defaults to today."),
):
    """Summarise task counts and stage distribution."""
    day = parse_day(today)
    snapshot = load_snapshot(file)
    summary = task_stats(snapshot.tasks, day)
    typer.echo(
        f"Tasks: {summary.total}  Completed: {summary.completed}  "
        f"In progress: {summary.in_progress}  Overdue: {summary.overdue}  "
        f"Completion: {summary.completion_rate}%"
    )
    for dist in stage_distribution(snapshot.tasks, snapshot.stages, day):
        if dist.total:
            typer.echo(
                f"{dist.name}: {dist.completed} completed, {dist.in_progress} in progress, "
                f"{dist.overdue} overdue, {dist.pending} pending"
            )


if __name__ == "__main__":
    app()
