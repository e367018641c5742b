from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional
import json
import yaml

NOT_STARTED = "not-started"
IN_PROGRESS = "in-progress"
UNDER_REVIEW = "under-review"
BLOCKED = "blocked"
COMPLETED = "completed"

TASK_STATUSES = (NOT_STARTED, IN_PROGRESS, UNDER_REVIEW, BLOCKED, COMPLETED)


@dataclass
class Task:
    """A unit of work located in the curriculum hierarchy by its component path."""

    id: Any
    component_path: Optional[str] = None
    status: str = NOT_STARTED
    name: Optional[str] = None
    stage_id: Any = None
    category_stage_id: Any = None
    project_id: Any = None
    assignees: List[Any] = field(default_factory=list)
    end_date: Optional[str] = None
    level_type: Optional[str] = None

    def references_stage(self, stage_id: Any) -> bool:
        key = str(stage_id)
        return any(
            ref is not None and str(ref) == key
            for ref in (self.category_stage_id, self.stage_id)
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {'id': self.id}
        if self.name is not None:
            data['name'] = self.name
        data['component_path'] = self.component_path
        data['status'] = self.status
        for key in ('stage_id', 'category_stage_id', 'project_id', 'end_date', 'level_type'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.assignees:
            data['assignees'] = list(self.assignees)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Task':
        end_date = data.get('end_date')
        return cls(
            id=data.get('id'),
            component_path=data.get('component_path'),
            status=data.get('status') or NOT_STARTED,
            name=data.get('name'),
            stage_id=data.get('stage_id'),
            category_stage_id=data.get('category_stage_id'),
            project_id=data.get('project_id'),
            assignees=list(data.get('assignees') or []),
            # YAML loads bare dates as ``datetime.date``
            end_date=str(end_date) if end_date is not None else None,
            level_type=data.get('level_type'),
        )


@dataclass
class Stage:
    """A named phase of work such as "Content" or "QA"."""

    id: Any
    name: str
    order_index: Optional[int] = None
    weight: Optional[float] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {'id': self.id, 'name': self.name}
        if self.order_index is not None:
            data['order_index'] = self.order_index
        if self.weight is not None:
            data['weight'] = self.weight
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Stage':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            order_index=data.get('order_index'),
            weight=data.get('weight'),
        )


@dataclass
class Project:
    id: Any
    name: str = ''
    status: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {'id': self.id, 'name': self.name}
        for key in ('status', 'start_date', 'end_date'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Project':
        start, end = data.get('start_date'), data.get('end_date')
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            status=data.get('status'),
            start_date=str(start) if start is not None else None,
            end_date=str(end) if end is not None else None,
        )


@dataclass
class Snapshot:
    """One consistent fetch of a project's stages and tasks."""

    project: Optional[Project] = None
    stages: List[Stage] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)

    def add_task(self, task: Task) -> None:
        self.tasks.append(task)

    def get_task(self, task_id: Any) -> Task:
        key = str(task_id)
        for task in self.tasks:
            if str(task.id) == key:
                return task
        raise KeyError(task_id)

    def next_task_id(self) -> int:
        ids = [t.id for t in self.tasks if isinstance(t.id, int)]
        return max(ids, default=0) + 1

    def find_stage(self, ref: Any) -> Optional[Stage]:
        """Return the stage whose id or name equals ``ref``."""
        key = str(ref)
        for stage in self.stages:
            if str(stage.id) == key:
                return stage
        lowered = key.lower()
        for stage in self.stages:
            if stage.name.lower() == lowered:
                return stage
        return None

    def tasks_for_project(self, project_id: Any = None) -> List[Task]:
        if project_id is None:
            return list(self.tasks)
        key = str(project_id)
        return [t for t in self.tasks if t.project_id is not None and str(t.project_id) == key]

    def to_dict(self) -> dict:
        data: dict[str, Any] = {}
        if self.project is not None:
            data['project'] = self.project.to_dict()
        data['stages'] = [s.to_dict() for s in self.stages]
        data['tasks'] = [t.to_dict() for t in self.tasks]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Snapshot':
        project = data.get('project')
        return cls(
            project=Project.from_dict(project) if project else None,
            stages=[Stage.from_dict(s) for s in data.get('stages') or []],
            tasks=[Task.from_dict(t) for t in data.get('tasks') or []],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> 'Snapshot':
        return cls.from_dict(json.loads(text))

    def to_yaml(self) -> str:
        return yaml.dump(self.to_dict(), sort_keys=False)

    @classmethod
    def from_yaml(cls, text: str) -> 'Snapshot':
        return cls.from_dict(yaml.safe_load(text) or {})
