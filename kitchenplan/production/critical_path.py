"""Critical path through a day's production tasks."""

from typing import List, Sequence

from ..models.production import ProductionTask


def critical_path(tasks: Sequence[ProductionTask]) -> List[str]:
    """
    Chain of tasks bounding the time to finish the shift.

    Starting at the earliest prep start, repeatedly take the longest task
    (ready - prep_start) among the unvisited tasks that start exactly at the
    cursor, then move the cursor to its ready time. Stops when no unvisited
    task starts at the cursor. Ties keep the input order.

    Returns:
        Task IDs in path order
    """
    if not tasks:
        return []

    path: List[str] = []
    visited = set()
    cursor = min(task.prep_start for task in tasks)

    while True:
        candidates = [
            task for task in tasks
            if task.task_id not in visited and task.prep_start == cursor
        ]
        if not candidates:
            break
        longest = max(candidates, key=lambda task: task.ready_time - task.prep_start)
        path.append(longest.task_id)
        visited.add(longest.task_id)
        cursor = longest.ready_time

    return path
