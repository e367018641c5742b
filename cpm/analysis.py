from __future__ import annotations

"""Task analytics: due dates, status counts and per-stage distribution."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .domain import COMPLETED, IN_PROGRESS, Stage, Task
from .progress import completion_percentage


@dataclass
class TaskStats:
    """Status counts across a set of tasks."""

    total: int
    completed: int
    in_progress: int
    overdue: int
    completion_rate: int


@dataclass
class StageDistribution:
    """How the tasks of one stage are spread across states."""

    name: str
    completed: int = 0
    in_progress: int = 0
    overdue: int = 0
    pending: int = 0
    total: int = 0


@dataclass
class DueBuckets:
    overdue: List[Task] = field(default_factory=list)
    today: List[Task] = field(default_factory=list)
    tomorrow: List[Task] = field(default_factory=list)
    this_week: List[Task] = field(default_factory=list)


def parse_due_date(value: Optional[str]) -> Optional[date]:
    """Return the calendar date of an ISO date or datetime string."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def days_until_due(task: Task, today: Optional[date] = None) -> Optional[int]:
    due = parse_due_date(task.end_date)
    if due is None:
        return None
    return (due - (today or date.today())).days


def is_overdue(task: Task, today: Optional[date] = None) -> bool:
    """A task is overdue when its end date is before ``today`` and it is not completed."""
    if task.status == COMPLETED:
        return False
    days = days_until_due(task, today)
    return days is not None and days < 0


def due_buckets(tasks: Sequence[Task], today: Optional[date] = None) -> DueBuckets:
    """Group open tasks by how soon they are due.

    ``this_week`` covers today through seven days ahead, so a task due today
    appears in both ``today`` and ``this_week``.
    """
    today = today or date.today()
    buckets = DueBuckets()
    for task in tasks:
        if task.status == COMPLETED:
            continue
        days = days_until_due(task, today)
        if days is None:
            continue
        if days < 0:
            buckets.overdue.append(task)
        if days == 0:
            buckets.today.append(task)
        if days == 1:
            buckets.tomorrow.append(task)
        if 0 <= days <= 7:
            buckets.this_week.append(task)
    return buckets


def task_stats(tasks: Sequence[Task], today: Optional[date] = None) -> TaskStats:
    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == COMPLETED)
    return TaskStats(
        total=total,
        completed=completed,
        in_progress=sum(1 for t in tasks if t.status == IN_PROGRESS),
        overdue=sum(1 for t in tasks if is_overdue(t, today)),
        completion_rate=completion_percentage(completed, total),
    )


def stage_distribution(
    tasks: Sequence[Task], stages: Sequence[Stage], today: Optional[date] = None
) -> List[StageDistribution]:
    """Return one :class:`StageDistribution` per stage, in the given order.

    Overdue takes precedence over in-progress; everything else that is not
    completed counts as pending.
    """
    result: List[StageDistribution] = []
    for stage in stages:
        dist = StageDistribution(name=stage.name)
        for task in tasks:
            if not task.references_stage(stage.id):
                continue
            dist.total += 1
            if task.status == COMPLETED:
                dist.completed += 1
            elif is_overdue(task, today):
                dist.overdue += 1
            elif task.status == IN_PROGRESS:
                dist.in_progress += 1
            else:
                dist.pending += 1
        result.append(dist)
    return result


def status_counts(tasks: Sequence[Task]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1
    return counts


__all__ = [
    "TaskStats",
    "StageDistribution",
    "DueBuckets",
    "parse_due_date",
    "days_until_due",
    "is_overdue",
    "due_buckets",
    "task_stats",
    "stage_distribution",
    "status_counts",
]
