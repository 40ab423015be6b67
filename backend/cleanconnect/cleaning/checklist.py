"""
cleaning/checklist.py

Checklist Tracker
Every task needs a confirmation from both the cleaner and the requesting user.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum
from uuid import UUID

from cleanconnect.cleaning.models import ChecklistItem


class ChecklistRole(str, Enum):
    CLEANER = "cleaner"
    REQUESTER = "requester"


def is_task_complete(item: ChecklistItem) -> bool:
    return bool(item.completed_cleaner and item.completed_requester)


def all_tasks_complete(checklist: Sequence[ChecklistItem]) -> bool:
    """True when the checklist is non-empty and every task is confirmed twice."""
    return len(checklist) > 0 and all(is_task_complete(item) for item in checklist)


def mark_task(item: ChecklistItem, role: ChecklistRole, user_id: UUID, timestamp: datetime) -> bool:
    """
    Set the confirmation flag of `role` on a task.

    completed_by / completed_at are only recorded when the second flag lands.

    Returns:
        bool: True if this call completed the task.
    """
    was_complete = is_task_complete(item)
    if role == ChecklistRole.CLEANER:
        item.completed_cleaner = True
    else:
        item.completed_requester = True

    if not was_complete and is_task_complete(item):
        item.completed_by = user_id
        item.completed_at = timestamp
        return True
    return False


def build_checklist(task_names: Iterable[str]) -> list[ChecklistItem]:
    """Fresh, unconfirmed checklist items in the given order."""
    return [
        ChecklistItem(
            position=position,
            task=name,
            completed_cleaner=False,
            completed_requester=False,
        )
        for position, name in enumerate(task_names)
    ]
