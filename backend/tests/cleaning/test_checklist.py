# tests/cleaning/test_checklist.py
from datetime import datetime, timezone
from uuid import uuid4

from cleanconnect.cleaning.checklist import (
    ChecklistRole,
    all_tasks_complete,
    build_checklist,
    mark_task,
)


def test_empty_checklist_is_never_complete() -> None:
    assert all_tasks_complete([]) is False


def test_checklist_completes_exactly_on_last_flag() -> None:
    checklist = build_checklist(["Kitchen", "Bathroom", "Windows"])
    cleaner, requester = uuid4(), uuid4()
    now = datetime.now(timezone.utc)

    flags = [
        (0, ChecklistRole.CLEANER, cleaner),
        (0, ChecklistRole.REQUESTER, requester),
        (1, ChecklistRole.CLEANER, cleaner),
        (1, ChecklistRole.REQUESTER, requester),
        (2, ChecklistRole.CLEANER, cleaner),
    ]
    for index, role, user_id in flags:
        mark_task(checklist[index], role, user_id, now)
        assert all_tasks_complete(checklist) is False

    mark_task(checklist[2], ChecklistRole.REQUESTER, requester, now)
    assert all_tasks_complete(checklist) is True


def test_completed_by_is_recorded_only_when_both_confirm() -> None:
    item = build_checklist(["Floors"])[0]
    cleaner, requester = uuid4(), uuid4()
    first = datetime(2025, 1, 5, 10, tzinfo=timezone.utc)
    second = datetime(2025, 1, 5, 12, tzinfo=timezone.utc)

    assert mark_task(item, ChecklistRole.CLEANER, cleaner, first) is False
    assert item.completed_by is None
    assert item.completed_at is None

    assert mark_task(item, ChecklistRole.REQUESTER, requester, second) is True
    assert item.completed_by == requester
    assert item.completed_at == second

    # Confirming again does not move the completion
    assert mark_task(item, ChecklistRole.CLEANER, cleaner, datetime.now(timezone.utc)) is False
    assert item.completed_at == second


def test_build_checklist_keeps_order_and_resets_flags() -> None:
    checklist = build_checklist(["a", "b"])

    assert [item.task for item in checklist] == ["a", "b"]
    assert [item.position for item in checklist] == [0, 1]
    assert not any(item.completed_cleaner or item.completed_requester for item in checklist)
