"""Build the curriculum hierarchy tree from a flat task list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .config import PATH_SEPARATOR
from .domain import COMPLETED, NOT_STARTED, Stage, Task
from .paths import infer_level_type, join_path, normalise_level_type, path_matches, split_path
from .progress import completion_percentage, derive_status, mean_progress, status_weight

logger = logging.getLogger(__name__)


@dataclass
class StageProgress:
    """Completion of one stage within a hierarchy node."""
    id: Any
    name: str
    completed: int
    total: int
    percentage: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "completed": self.completed,
            "total": self.total,
            "percentage": self.percentage,
        }


@dataclass
class HierarchyNode:
    """A node in the hierarchy tree, one per unique path prefix."""
    id: str
    name: str
    type: str
    segments: List[str]
    parent_id: Optional[str] = None
    children: List["HierarchyNode"] = field(default_factory=list)
    progress: int = 0
    status: str = NOT_STARTED
    total_tasks: int = 0
    completed_tasks: int = 0
    stages: List[StageProgress] = field(default_factory=list)

    @property
    def level(self) -> int:
        return len(self.segments) - 1

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "parentId": self.parent_id,
            "children": [c.to_dict() for c in self.children],
            "progress": self.progress,
            "status": self.status,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "stages": [s.to_dict() for s in self.stages],
            "level": self.level,
            "hasChildren": self.has_children,
        }


def sort_key(name: str) -> Tuple[int, int, str]:
    """Order names numerically by their digits, falling back to the name itself.

    ``"G2"``, ``"G1"``, ``"G10"`` sort as ``G1, G2, G10``. Names without
    digits come after numbered names, alphabetically.
    """
    digits = "".join(ch for ch in name if ch.isdigit())
    if digits:
        return (0, int(digits), name)
    return (1, 0, name)


def _sort_nodes(nodes: List[HierarchyNode]) -> None:
    nodes.sort(key=lambda n: sort_key(n.name))
    for node in nodes:
        _sort_nodes(node.children)


def _build_index(
    tasks: Iterable[Task], separator: str = PATH_SEPARATOR
) -> Tuple[List[HierarchyNode], Dict[str, HierarchyNode]]:
    index: Dict[str, HierarchyNode] = {}
    roots: List[HierarchyNode] = []
    explicit: Set[str] = set()

    for task in tasks:
        segments = split_path(task.component_path, separator)
        if not segments:
            logger.debug("Skipping task %s without a component path", task.id)
            continue

        parent: Optional[HierarchyNode] = None
        for depth, segment in enumerate(segments):
            node_id = join_path(segments[: depth + 1], separator)
            node = index.get(node_id)
            if node is None:
                node = HierarchyNode(
                    id=node_id,
                    name=segment,
                    type=infer_level_type(segment, depth),
                    segments=list(segments[: depth + 1]),
                    parent_id=parent.id if parent else None,
                )
                index[node_id] = node
                if parent is not None:
                    parent.children.append(node)
                else:
                    roots.append(node)
            parent = node

        tagged = normalise_level_type(task.level_type)
        if tagged and parent is not None:
            if parent.id not in explicit:
                parent.type = tagged
                explicit.add(parent.id)
            elif parent.type != tagged:
                logger.warning(
                    "Task %s tags %s as %s, keeping %s", task.id, parent.id, tagged, parent.type
                )

    return roots, index


def build_hierarchy(tasks: Sequence[Task], separator: str = PATH_SEPARATOR) -> List[HierarchyNode]:
    """
    Fold tasks into a tree keyed by cumulative path prefixes.

    Returns the sorted root nodes. Progress is not computed here; see
    :func:`build_project_hierarchy` for the full pipeline.
    """
    roots, _ = _build_index(tasks, separator)
    _sort_nodes(roots)
    return roots


def matching_tasks(
    node: HierarchyNode, tasks: Iterable[Task], separator: str = PATH_SEPARATOR
) -> List[Task]:
    """Return the tasks whose path has ``node``'s segments as a prefix."""
    return [
        t for t in tasks
        if path_matches(split_path(t.component_path, separator), node.segments)
    ]


def aggregate_node(
    node: HierarchyNode, tasks: Sequence[Task], separator: str = PATH_SEPARATOR
) -> HierarchyNode:
    """Set task counts, progress and status on ``node`` from ``tasks``."""
    matched = matching_tasks(node, tasks, separator)
    node.total_tasks = len(matched)
    node.completed_tasks = sum(1 for t in matched if t.status == COMPLETED)
    node.progress = mean_progress(matched)
    node.status = derive_status(node.progress)
    return node


def _ordered_stages(stages: Sequence[Stage]) -> List[Stage]:
    return sorted(
        stages,
        key=lambda s: (s.order_index is None, s.order_index if s.order_index is not None else 0),
    )


def stage_progress(stage: Stage, stage_tasks: Sequence[Task]) -> StageProgress:
    total = len(stage_tasks)
    if total == 1:
        percentage = status_weight(stage_tasks[0].status)
        completed = 1 if percentage == 100 else 0
    else:
        completed = sum(1 for t in stage_tasks if t.status == COMPLETED)
        percentage = completion_percentage(completed, total)
    return StageProgress(
        id=stage.id, name=stage.name, completed=completed, total=total, percentage=percentage
    )


def rollup_stages(
    node: HierarchyNode,
    tasks: Sequence[Task],
    stages: Sequence[Stage],
    separator: str = PATH_SEPARATOR,
) -> HierarchyNode:
    """Fill ``node.stages`` with one record per stage that has matching tasks."""
    matched = matching_tasks(node, tasks, separator)
    records = []
    for stage in _ordered_stages(stages):
        stage_tasks = [t for t in matched if t.references_stage(stage.id)]
        if stage_tasks:
            records.append(stage_progress(stage, stage_tasks))
    node.stages = records
    return node


def build_project_hierarchy(
    tasks: Sequence[Task],
    stages: Sequence[Stage] = (),
    project_id: Any = None,
    separator: str = PATH_SEPARATOR,
) -> List[HierarchyNode]:
    """Build, aggregate and stage-roll-up the hierarchy for a project.

    When ``project_id`` is given only tasks of that project are used.
    """
    if project_id is not None:
        key = str(project_id)
        tasks = [t for t in tasks if t.project_id is not None and str(t.project_id) == key]

    roots, index = _build_index(tasks, separator)
    for node in index.values():
        aggregate_node(node, tasks, separator)
        rollup_stages(node, tasks, stages, separator)
    _sort_nodes(roots)

    logger.debug("Built %d hierarchy nodes (%d roots) from %d tasks", len(index), len(roots), len(tasks))
    return roots


def flatten_tree(nodes: List[HierarchyNode], depth: int = 0) -> List[Tuple[HierarchyNode, int]]:
    """
    Flatten tree back to list with indent depth.

    Returns list of (node, depth) tuples in pre-order.
    """
    result: List[Tuple[HierarchyNode, int]] = []
    for node in nodes:
        result.append((node, depth))
        result.extend(flatten_tree(node.children, depth + 1))
    return result


def find_node(nodes: List[HierarchyNode], node_id: str) -> Optional[HierarchyNode]:
    for node, _ in flatten_tree(nodes):
        if node.id == node_id:
            return node
    return None


__all__ = [
    "StageProgress",
    "HierarchyNode",
    "sort_key",
    "build_hierarchy",
    "matching_tasks",
    "aggregate_node",
    "stage_progress",
    "rollup_stages",
    "build_project_hierarchy",
    "flatten_tree",
    "find_node",
]
