import logging

import pytest

from cpm.domain import Stage, Task
from cpm.hierarchy import (
    aggregate_node,
    build_hierarchy,
    build_project_hierarchy,
    find_node,
    flatten_tree,
    matching_tasks,
    rollup_stages,
)
from cpm.paths import split_path


def make_tasks(*rows):
    return [
        Task(id=i, component_path=path, status=status, stage_id=stage)
        for i, (path, status, stage) in enumerate(rows, start=1)
    ]


@pytest.fixture
def curriculum():
    tasks = make_tasks(
        ("G1 > U1 > L1", "completed", 1),
        ("G1 > U1 > L1", "in-progress", 2),
        ("G1 > U1 > L2", "under-review", 1),
        ("G1 > U2 > L1", "blocked", 1),
        ("G2 > U1 > L1", "not-started", 1),
        ("G10", "completed", 2),
        ("", "completed", 1),
    )
    stages = [Stage(id=1, name="Content", order_index=1), Stage(id=2, name="QA", order_index=2)]
    return tasks, stages


def test_empty_input():
    assert build_project_hierarchy([], []) == []


def test_single_segment_task():
    roots = build_project_hierarchy(make_tasks(("G1", "completed", None)), [])
    assert len(roots) == 1
    root = roots[0]
    assert root.id == "G1"
    assert root.total_tasks == 1
    assert root.completed_tasks == 1
    assert root.progress == 100
    assert root.status == "completed"
    assert root.children == []
    assert not root.has_children


def test_three_level_mixed_statuses():
    tasks = make_tasks(
        ("G1>U1>L1", "completed", None),
        ("G1>U1>L2", "in-progress", None),
    )
    roots = build_project_hierarchy(tasks, [])

    grade = roots[0]
    assert (grade.id, grade.total_tasks, grade.progress) == ("G1", 2, 75)
    unit = grade.children[0]
    assert (unit.id, unit.total_tasks, unit.progress) == ("G1>U1", 2, 75)
    assert unit.parent_id == "G1"
    assert [(c.id, c.progress) for c in unit.children] == [("G1>U1>L1", 100), ("G1>U1>L2", 50)]
    assert all(not c.has_children for c in unit.children)


def test_paths_are_trimmed_into_node_ids():
    roots = build_hierarchy(make_tasks(("G1 > U1 > L1", "completed", None)))
    assert roots[0].children[0].children[0].id == "G1>U1>L1"
    assert roots[0].children[0].children[0].level == 2


def test_tasks_without_path_are_excluded(curriculum):
    tasks, stages = curriculum
    roots = build_project_hierarchy(tasks, stages)
    total = sum(r.total_tasks for r in roots)
    assert total == len(tasks) - 1


def test_identical_paths_share_one_node():
    tasks = make_tasks(("G1>U1", "completed", None), ("G1>U1", "not-started", None))
    roots = build_project_hierarchy(tasks, [])
    assert len(roots[0].children) == 1
    unit = roots[0].children[0]
    assert unit.total_tasks == 2
    assert unit.progress == 50


def test_numeric_aware_root_order():
    tasks = make_tasks(("G2", "completed", None), ("G1", "completed", None), ("G10", "completed", None))
    roots = build_hierarchy(tasks)
    assert [r.name for r in roots] == ["G1", "G2", "G10"]


def test_children_sorted_numerically_then_alphabetically():
    tasks = make_tasks(
        ("G1>L10", "completed", None),
        ("G1>L2", "completed", None),
        ("G1>Review", "completed", None),
        ("G1>Appendix", "completed", None),
    )
    roots = build_hierarchy(tasks)
    assert [c.name for c in roots[0].children] == ["L2", "L10", "Appendix", "Review"]


def test_segment_prefix_does_not_match_longer_name():
    tasks = make_tasks(("G1>U1", "completed", None), ("G10>U1", "not-started", None))
    roots = build_project_hierarchy(tasks, [])
    g1 = find_node(roots, "G1")
    assert g1.total_tasks == 1
    assert g1.progress == 100


def test_unknown_status_counts_as_zero():
    tasks = make_tasks(("G1", "completed", None), ("G1", "archived", None))
    roots = build_project_hierarchy(tasks, [])
    assert roots[0].progress == 50
    assert roots[0].status == "in-progress"


def test_progress_rounds_half_up():
    tasks = make_tasks(("G1", "completed", None), ("G1", "blocked", None))
    roots = build_project_hierarchy(tasks, [])
    assert roots[0].progress == 63


def test_all_not_started_is_not_started():
    tasks = make_tasks(("G1>U1", "not-started", None))
    roots = build_project_hierarchy(tasks, [])
    assert roots[0].progress == 0
    assert roots[0].status == "not-started"


def test_type_inference():
    tasks = make_tasks(
        ("G1>U1>L1>Quiz", "completed", None),
        ("G1>B2", "completed", None),
        ("G1>L3", "completed", None),
        ("G1>Extras", "completed", None),
    )
    index = {node.id: node.type for node, _ in flatten_tree(build_hierarchy(tasks))}
    assert index["G1"] == "grade"
    assert index["G1>U1"] == "book"
    assert index["G1>B2"] == "book"
    assert index["G1>L3"] == "lesson"
    assert index["G1>Extras"] == "book"
    assert index["G1>U1>L1"] == "lesson"
    assert index["G1>U1>L1>Quiz"] == "item"


def test_explicit_level_type_overrides_heuristic():
    tasks = [Task(id=1, component_path="G1>Intro", level_type="lesson")]
    roots = build_hierarchy(tasks)
    assert roots[0].children[0].type == "lesson"


def test_conflicting_level_types_keep_first(caplog):
    tasks = [
        Task(id=1, component_path="G1>Intro", level_type="lesson"),
        Task(id=2, component_path="G1>Intro", level_type="item"),
    ]
    with caplog.at_level(logging.WARNING, logger="cpm.hierarchy"):
        roots = build_hierarchy(tasks)
    assert roots[0].children[0].type == "lesson"
    assert "keeping lesson" in caplog.text


def test_stage_rollup_single_task_uses_status_weight():
    tasks = [Task(id=1, component_path="G1>U1>L1", status="under-review", stage_id=5)]
    stages = [Stage(id=5, name="Design", order_index=3)]
    lesson = find_node(build_project_hierarchy(tasks, stages), "G1>U1>L1")
    assert [s.to_dict() for s in lesson.stages] == [
        {"id": 5, "name": "Design", "completed": 0, "total": 1, "percentage": 75}
    ]


def test_stage_rollup_filters_stages_without_tasks():
    tasks = [Task(id=1, component_path="G1", status="completed", stage_id=1)]
    stages = [Stage(id=1, name="Content"), Stage(id=2, name="QA")]
    root = build_project_hierarchy(tasks, stages)[0]
    assert [s.name for s in root.stages] == ["Content"]
    assert root.stages[0].completed == 1
    assert root.stages[0].percentage == 100


def test_stage_rollup_multiple_tasks_counts_completed():
    tasks = make_tasks(("G1>U1", "completed", 1), ("G1>U2", "under-review", 1))
    stages = [Stage(id=1, name="Content")]
    root = build_project_hierarchy(tasks, stages)[0]
    record = root.stages[0]
    assert (record.completed, record.total, record.percentage) == (1, 2, 50)


def test_stage_rollup_matches_category_stage_and_string_ids():
    tasks = [Task(id=1, component_path="G1", status="in-progress", category_stage_id="7")]
    stages = [Stage(id=7, name="Storyboarding")]
    root = build_project_hierarchy(tasks, stages)[0]
    assert root.stages[0].percentage == 50


def test_stage_rollup_follows_order_index():
    tasks = make_tasks(("G1", "completed", 1), ("G1", "completed", 2))
    stages = [Stage(id=1, name="QA", order_index=5), Stage(id=2, name="Content", order_index=1)]
    root = build_project_hierarchy(tasks, stages)[0]
    assert [s.name for s in root.stages] == ["Content", "QA"]


def test_aggregate_and_rollup_mutate_node(curriculum):
    tasks, stages = curriculum
    roots = build_hierarchy(tasks)
    node = find_node(roots, "G1>U1")
    assert node.total_tasks == 0
    aggregate_node(node, tasks)
    rollup_stages(node, tasks, stages)
    assert node.total_tasks == 3
    assert node.completed_tasks == 1
    assert node.progress == round((100 + 50 + 75) / 3)
    assert [s.name for s in node.stages] == ["Content", "QA"]


def test_project_scoping():
    tasks = [
        Task(id=1, component_path="G1", status="completed", project_id=1),
        Task(id=2, component_path="G2", status="completed", project_id=2),
    ]
    roots = build_project_hierarchy(tasks, [], project_id="1")
    assert [r.id for r in roots] == ["G1"]


def test_prefix_invariant_and_bounds(curriculum):
    tasks, stages = curriculum
    roots = build_project_hierarchy(tasks, stages)
    for node, depth in flatten_tree(roots):
        assert node.level == depth
        assert 0 <= node.progress <= 100
        matched = matching_tasks(node, tasks)
        assert len(matched) == node.total_tasks
        for task in matched:
            assert split_path(task.component_path)[: len(node.segments)] == node.segments
        for child in node.children:
            assert child.parent_id == node.id
            assert child.id.startswith(node.id + ">")


def test_completeness(curriculum):
    tasks, stages = curriculum
    for node, _ in flatten_tree(build_project_hierarchy(tasks, stages)):
        all_done = all(t.status == "completed" for t in matching_tasks(node, tasks))
        assert (node.progress == 100) == all_done


def test_nearly_done_large_node_is_not_completed():
    tasks = make_tasks(*[("G1>U1", "completed", None)] * 199, ("G1>U1", "in-progress", None))
    root = build_project_hierarchy(tasks, [])[0]
    assert root.total_tasks == 200
    assert root.completed_tasks == 199
    assert root.progress == 99
    assert root.status == "in-progress"
    assert root.children[0].progress == 99


def test_nearly_done_large_stage_is_not_complete():
    tasks = make_tasks(*[("G1", "completed", 1)] * 399, ("G1", "not-started", 1))
    root = build_project_hierarchy(tasks, [Stage(id=1, name="Content")])[0]
    record = root.stages[0]
    assert (record.completed, record.total, record.percentage) == (399, 400, 99)


def test_doubled_separators_merge_with_plain_path():
    tasks = make_tasks(("G1 > > L1", "completed", None), ("G1 > L1 >", "not-started", None))
    roots = build_project_hierarchy(tasks, [])
    assert [node.id for node, _ in flatten_tree(roots)] == ["G1", "G1>L1"]
    lesson = find_node(roots, "G1>L1")
    assert lesson.total_tasks == 2
    assert lesson.progress == 50


def test_idempotent(curriculum):
    tasks, stages = curriculum
    first = [r.to_dict() for r in build_project_hierarchy(tasks, stages)]
    second = [r.to_dict() for r in build_project_hierarchy(tasks, stages)]
    assert first == second


def test_to_dict_output_contract():
    tasks = make_tasks(("G1>U1", "completed", None))
    data = build_project_hierarchy(tasks, [])[0].to_dict()
    assert set(data) == {
        "id", "name", "type", "parentId", "children", "progress", "status",
        "totalTasks", "completedTasks", "stages", "level", "hasChildren",
    }
    assert data["parentId"] is None
    assert data["hasChildren"] is True
    assert data["children"][0]["parentId"] == "G1"
    assert data["children"][0]["level"] == 1


def test_find_node_missing_returns_none():
    assert find_node(build_hierarchy(make_tasks(("G1", "completed", None))), "G2") is None
