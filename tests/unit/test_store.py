"""
Unit tests for the in-memory habit store.
"""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest
from conftest import make_habit

from habits.store import HabitStore, load_habit_store
from models.vacation import VacationPeriod
from utils.exceptions import HabitNotFoundError, VacationOverlapError


def test_upsert_notifies_listeners():
    store = HabitStore()
    listener = MagicMock()
    store.subscribe(listener)
    habit = make_habit()

    store.upsert_habit(habit)

    listener.assert_called_once_with("h1", habit)
    assert store.get_habit("h1") == habit


def test_unsubscribe():
    store = HabitStore()
    listener = MagicMock()
    unsubscribe = store.subscribe(listener)

    unsubscribe()
    store.upsert_habit(make_habit())

    listener.assert_not_called()


def test_remove_habit():
    store = HabitStore([make_habit()])
    listener = MagicMock()
    store.subscribe(listener)

    store.remove_habit("h1")

    listener.assert_called_once_with("h1", None)
    with pytest.raises(HabitNotFoundError):
        store.remove_habit("h1")


def test_failing_listener_does_not_block_others():
    store = HabitStore()
    failing = MagicMock(side_effect=RuntimeError("boom"))
    working = MagicMock()
    store.subscribe(failing)
    store.subscribe(working)

    store.upsert_habit(make_habit())

    working.assert_called_once()


def test_list_habits_hides_archived():
    store = HabitStore([make_habit("h1"), make_habit("h2", is_archived=True)])

    assert [h.id for h in store.list_habits()] == ["h1"]
    assert [h.id for h in store.list_habits(include_archived=True)] == ["h1", "h2"]


def test_mark_completed():
    original = make_habit()
    store = HabitStore([original])

    updated = store.mark_completed("h1", date(2026, 3, 2))

    assert updated.is_completed_on(date(2026, 3, 2))
    assert not original.is_completed_on(date(2026, 3, 2))
    assert store.get_habit("h1") is updated

    with pytest.raises(HabitNotFoundError):
        store.mark_completed("missing", date(2026, 3, 2))


def test_add_vacation_period_rejects_overlap():
    store = HabitStore()
    store.add_vacation_period(
        VacationPeriod(id="v1", reason="Trip", start_date=date(2026, 3, 1), end_date=date(2026, 3, 5))
    )

    with pytest.raises(VacationOverlapError):
        store.add_vacation_period(
            VacationPeriod(id="v2", reason="Sick", start_date=date(2026, 3, 5), end_date=date(2026, 3, 7))
        )

    # Editing a period may overlap its own previous range
    store.add_vacation_period(
        VacationPeriod(id="v1", reason="Trip", start_date=date(2026, 3, 2), end_date=date(2026, 3, 6))
    )
    assert [p.end_date for p in store.vacation_periods] == [date(2026, 3, 6)]
    assert store.remove_vacation_period("v1") is True
    assert store.remove_vacation_period("v1") is False


def test_load_habit_store(tmp_path):
    seed = {
        "habits": [
            {
                "id": "h1",
                "name": "Meditate",
                "created_at": "2026-01-10T08:00:00",
                "reminders": [{"id": "r1", "time": "07:30"}],
            }
        ],
        "vacation_periods": [
            {"id": "v1", "reason": "Trip", "start_date": "2026-05-01", "end_date": "2026-05-03"}
        ],
    }
    path = tmp_path / "habits.json"
    path.write_text(json.dumps(seed), encoding="utf-8")

    store = load_habit_store(path)

    assert store.get_habit("h1").reminders[0].time == "07:30"
    assert store.vacation_periods[0].id == "v1"
    assert store.snapshot().habits[0].name == "Meditate"
