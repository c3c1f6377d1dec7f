# taskboard_client/ordering.py — Drag-and-drop ordering over the flat task list
"""
The board keeps all of its tasks in one flat list. A column's order is the
relative order of its tasks in that list, so a drop only has to splice the
moved task into the right slot; every other column keeps its order untouched.
"""
from typing import List, Sequence

from taskboard_client.models import Task


def tasks_in_column(tasks: Sequence[Task], column_id: str) -> List[Task]:
    return [t for t in tasks if t.column_id == column_id]


def index_in_column(tasks: Sequence[Task], task_id: str) -> int:
    """Visual index of a task inside its own column, or -1."""
    for t in tasks:
        if t.id == task_id:
            return [c.id for c in tasks_in_column(tasks, t.column_id)].index(task_id)
    return -1


def reorder(tasks: Sequence[Task], task_id: str, target_column_id: str, new_index: int) -> List[Task]:
    """Return a new flat list with ``task_id`` dropped at ``new_index`` of ``target_column_id``.

    An unknown ``task_id`` leaves the order as it is. The input is not modified.
    """
    moving = next((t for t in tasks if t.id == task_id), None)
    if moving is None:
        return list(tasks)

    moved = moving.model_copy(update={"column_id": target_column_id})
    rest = [t for t in tasks if t.id != task_id]
    target = tasks_in_column(rest, target_column_id)

    if new_index >= len(target):
        if not target:
            rest.append(moved)
        else:
            last = next(i for i, t in enumerate(rest) if t.id == target[-1].id)
            rest.insert(last + 1, moved)
    else:
        ref = target[max(new_index, 0)]
        at = next(i for i, t in enumerate(rest) if t.id == ref.id)
        rest.insert(at, moved)
    return rest
