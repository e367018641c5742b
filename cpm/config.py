"""Runtime defaults for Curriculum Progress Manager.

Values can be overridden through environment variables.
"""

from __future__ import annotations

import os
from typing import List

SNAPSHOT_FILE = os.environ.get("CPM_SNAPSHOT", "cpm.yaml")
PATH_SEPARATOR = os.environ.get("CPM_PATH_SEPARATOR", ">")
LOG_LEVEL = os.environ.get("CPM_LOG_LEVEL", "WARNING").upper()

DEFAULT_STAGES: List[str] = [
    "Content",
    "Storyboarding",
    "Design",
    "Development",
    "QA",
]

__all__ = ["SNAPSHOT_FILE", "PATH_SEPARATOR", "LOG_LEVEL", "DEFAULT_STAGES"]
