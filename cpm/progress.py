"""Progress calculation utilities for Curriculum Progress Manager.

Task statuses map to fixed completion weights:

    - ``completed``: 100
    - ``under-review``: 75
    - ``in-progress``: 50
    - ``blocked``: 25
    - ``not-started``: 0

Any other status counts as 0. A collection of tasks progresses by the mean
of its weights, rounded half-up to an integer, and the coarse status of a
node is derived from that number alone.

The module also holds the stage weight helpers used to combine per-stage
progress into a project figure, and the text renderers used by the CLI.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence, Tuple

from .domain import BLOCKED, COMPLETED, IN_PROGRESS, NOT_STARTED, UNDER_REVIEW, Stage, Task


STATUS_WEIGHTS: Dict[str, int] = {
    COMPLETED: 100,
    UNDER_REVIEW: 75,
    IN_PROGRESS: 50,
    BLOCKED: 25,
    NOT_STARTED: 0,
}


def round_half_up(value: float) -> int:
    """Round ``value`` to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


def status_weight(status: str) -> int:
    """Return the completion weight of ``status`` (0 when unrecognised)."""
    return STATUS_WEIGHTS.get(status, 0)


def mean_progress(tasks: Iterable[Task]) -> int:
    """Return the rounded mean weight of ``tasks``, or 0 for no tasks.

    The result is 100 only when every task is completed; a mean that merely
    rounds up to 100 is held at 99.
    """
    weights = [status_weight(t.status) for t in tasks]
    if not weights:
        return 0
    progress = round_half_up(sum(weights) / len(weights))
    if progress == 100 and any(w < 100 for w in weights):
        return 99
    return progress


def completion_percentage(completed: int, total: int) -> int:
    """Return ``completed`` out of ``total`` as a whole percentage.

    Held at 99 until ``completed`` reaches ``total``; 0 when ``total`` is 0.
    """
    if not total:
        return 0
    percentage = round_half_up(completed / total * 100)
    if percentage == 100 and completed < total:
        return 99
    return percentage


def derive_status(progress: float) -> str:
    if progress >= 100:
        return COMPLETED
    if progress > 0:
        return IN_PROGRESS
    return NOT_STARTED


def validate_weights(items: Sequence[Stage], item_type: str = "Stage") -> Tuple[bool, str]:
    """Check that the ``weight`` of ``items`` sums to 100 (within 0.1)."""
    total = sum(item.weight or 0 for item in items)
    if abs(total - 100) > 0.1:
        return False, f"{item_type} weights must sum to 100%. Current total: {total:g}%"
    return True, "Weights are valid"


def distribute_weights_evenly(items: Sequence[Stage]) -> List[Stage]:
    """Return copies of ``items`` with integer weights summing to 100.

    The rounding remainder is assigned to the first item.
    """
    if not items:
        return []
    per_item = round_half_up(100 / len(items))
    remainder = 100 - per_item * len(items)
    return [
        replace(item, weight=per_item + remainder if i == 0 else per_item)
        for i, item in enumerate(items)
    ]


def weighted_progress(stages: Sequence[Stage], tasks: Sequence[Task]) -> int:
    """Combine per-stage progress into one figure using stage weights.

    Each stage contributes ``progress * weight / 100``; stages without a
    weight are ignored. Returns 0 when no stage carries a weight.
    """
    total = 0.0
    total_weight = 0.0
    for stage in stages:
        if not stage.weight:
            continue
        stage_tasks = [t for t in tasks if t.references_stage(stage.id)]
        total += mean_progress(stage_tasks) * stage.weight / 100
        total_weight += stage.weight
    return round_half_up(total) if total_weight > 0 else 0


def progress_bar(percent: float, width: int = 20) -> str:
    """Return a ``#``/``-`` bar of ``width`` characters filled to ``percent``."""
    percent = max(0.0, min(float(percent), 100.0))
    filled = round_half_up(width * percent / 100)
    return "#" * filled + "-" * (width - filled)


def render_tree(roots, show_stages: bool = False, width: int = 20) -> str:
    """Render hierarchy nodes as an indented text tree."""
    lines: List[str] = []

    def walk(node, depth: int) -> None:
        indent = "  " * depth
        lines.append(
            f"{indent}{node.name} [{progress_bar(node.progress, width)}] "
            f"{node.progress}% {node.status} "
            f"({node.completed_tasks}/{node.total_tasks} tasks)"
        )
        if show_stages:
            for stage in node.stages:
                lines.append(
                    f"{indent}    - {stage.name}: {stage.percentage}% "
                    f"({stage.completed}/{stage.total})"
                )
        for child in node.children:
            walk(child, depth + 1)

    for root in roots:
        walk(root, 0)
    return "\n".join(lines)


__all__ = [
    "STATUS_WEIGHTS",
    "round_half_up",
    "status_weight",
    "mean_progress",
    "completion_percentage",
    "derive_status",
    "validate_weights",
    "distribute_weights_evenly",
    "weighted_progress",
    "progress_bar",
    "render_tree",
]
