"""Component path helpers.

A component path locates a task inside the educational hierarchy, e.g.
``"G1 > U2 > L3"``. Paths are split into trimmed segments; each cumulative
prefix of segments identifies one hierarchy node.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .config import PATH_SEPARATOR

GRADE = "grade"
BOOK = "book"
LESSON = "lesson"
ITEM = "item"

LEVEL_TYPES = (GRADE, BOOK, LESSON, ITEM)


def split_path(path: Optional[str], separator: str = PATH_SEPARATOR) -> List[str]:
    """Return the trimmed segments of ``path``.

    ``None``, empty and whitespace-only paths yield an empty list. Empty
    segments left by doubled or trailing separators are dropped, so
    ``"G1 > > L1"`` names the same node as ``"G1 > L1"``.
    """
    if not path or not isinstance(path, str):
        return []
    return [part.strip() for part in path.split(separator) if part.strip()]


def join_path(segments: Sequence[str], separator: str = PATH_SEPARATOR) -> str:
    """Return the node id for ``segments``."""
    return separator.join(segments)


def compose_path(*names: Optional[str], separator: str = " > ") -> str:
    """Build a display path from grade, book, unit and lesson names.

    Composition stops at the first missing name, so a lesson without a unit
    is never appended.
    """
    parts: List[str] = []
    for name in names:
        if not name:
            break
        parts.append(name)
    return separator.join(parts)


def path_matches(task_segments: Sequence[str], node_segments: Sequence[str]) -> bool:
    """Return ``True`` if ``node_segments`` is a segment-wise prefix of ``task_segments``."""
    if len(task_segments) < len(node_segments):
        return False
    return list(task_segments[: len(node_segments)]) == list(node_segments)


def infer_level_type(segment: str, depth: int) -> str:
    """Guess the structural type of ``segment`` from its depth and first letter."""
    if depth == 0:
        return GRADE
    if depth == 1:
        if segment.startswith(("B", "U")):
            return BOOK
        if segment.startswith("L"):
            return LESSON
        return BOOK
    if depth == 2:
        return LESSON
    return ITEM


def normalise_level_type(value: Optional[str]) -> Optional[str]:
    """Return ``value`` lower-cased if it names a known level type."""
    if not value or not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered == "unit":
        return BOOK
    return lowered if lowered in LEVEL_TYPES else None


__all__ = [
    "GRADE",
    "BOOK",
    "LESSON",
    "ITEM",
    "LEVEL_TYPES",
    "split_path",
    "join_path",
    "compose_path",
    "path_matches",
    "infer_level_type",
    "normalise_level_type",
]
