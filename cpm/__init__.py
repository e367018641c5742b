"""Curriculum Progress Manager core package."""

from .domain import Task, Stage, Project, Snapshot
from .hierarchy import (
    HierarchyNode,
    StageProgress,
    build_hierarchy,
    build_project_hierarchy,
    flatten_tree,
)
from .progress import progress_bar, render_tree, status_weight
from .paths import split_path, compose_path

__all__ = [
    "Task",
    "Stage",
    "Project",
    "Snapshot",
    "HierarchyNode",
    "StageProgress",
    "build_hierarchy",
    "build_project_hierarchy",
    "flatten_tree",
    "progress_bar",
    "render_tree",
    "status_weight",
    "split_path",
    "compose_path",
]
