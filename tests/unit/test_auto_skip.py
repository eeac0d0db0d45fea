"""
Unit tests for habit auto-skip rules.
"""

from datetime import date

from conftest import make_habit

from habits.auto_skip import count_completions, is_date_auto_skipped
from models.habit import FrequencyConfig, FrequencyType
from models.vacation import VacationPeriod

MONDAY = date(2026, 3, 2)


def test_no_frequency_never_skips():
    assert is_date_auto_skipped(make_habit(), MONDAY) is False


def test_days_of_week():
    # Wednesday and Friday only
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.BY_DAYS_OF_WEEK, days_of_week=[3, 5])
    )

    assert is_date_auto_skipped(habit, MONDAY) is True
    assert is_date_auto_skipped(habit, date(2026, 3, 4)) is False
    assert is_date_auto_skipped(habit, date(2026, 3, 6)) is False


def test_completed_day_is_not_skipped():
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.BY_DAYS_OF_WEEK, days_of_week=[3]),
        completions={"2026-03-02": True},
    )

    assert is_date_auto_skipped(habit, MONDAY) is False


def test_before_start_is_not_skipped():
    habit = make_habit(
        start_date=date(2026, 4, 1),
        frequency=FrequencyConfig(type=FrequencyType.BY_DAYS_OF_WEEK, days_of_week=[3]),
    )

    assert is_date_auto_skipped(habit, MONDAY) is False


def test_every_n_days_counts_from_start():
    habit = make_habit(
        start_date=date(2026, 3, 1),
        frequency=FrequencyConfig(type=FrequencyType.EVERY_N_DAYS, period=3),
    )

    assert is_date_auto_skipped(habit, date(2026, 3, 1)) is False
    assert is_date_auto_skipped(habit, date(2026, 3, 2)) is True
    assert is_date_auto_skipped(habit, date(2026, 3, 3)) is True
    assert is_date_auto_skipped(habit, date(2026, 3, 4)) is False


def test_every_day_period_never_skips():
    habit = make_habit(frequency=FrequencyConfig(type=FrequencyType.EVERY_N_DAYS, period=1))

    assert is_date_auto_skipped(habit, MONDAY) is False


def test_weekly_target_reached():
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.N_TIMES_WEEK, count=2),
        completions={"2026-03-02": True, "2026-03-03": True},
    )

    assert is_date_auto_skipped(habit, date(2026, 3, 4)) is True


def test_weekly_target_not_reached():
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.N_TIMES_WEEK, count=3),
        completions={"2026-03-02": True},
    )

    assert is_date_auto_skipped(habit, date(2026, 3, 4)) is False


def test_vacation_lowers_weekly_target():
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.N_TIMES_WEEK, count=3),
        completions={"2026-03-02": True},
    )
    # Tuesday to Sunday away: one available day left in the week
    vacation = VacationPeriod(
        id="v1", reason="Trip", start_date=date(2026, 3, 3), end_date=date(2026, 3, 8)
    )

    assert is_date_auto_skipped(habit, date(2026, 3, 4), [vacation]) is True


def test_vacation_for_other_habit_is_ignored():
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.N_TIMES_WEEK, count=3),
        completions={"2026-03-02": True},
    )
    vacation = VacationPeriod(
        id="v1",
        reason="Trip",
        start_date=date(2026, 3, 3),
        end_date=date(2026, 3, 8),
        apply_to_all=False,
        habit_ids=["other"],
    )

    assert is_date_auto_skipped(habit, date(2026, 3, 4), [vacation]) is False


def test_monthly_target_reached():
    habit = make_habit(
        frequency=FrequencyConfig(type=FrequencyType.N_TIMES_MONTH, count=2),
        completions={"2026-03-02": True, "2026-03-10": 2.5},
    )

    assert is_date_auto_skipped(habit, date(2026, 3, 20)) is True
    assert is_date_auto_skipped(habit, date(2026, 4, 1)) is False


def test_count_completions():
    habit = make_habit(completions={"2026-03-02": True, "2026-03-03": False, "2026-03-04": 0})

    assert count_completions(habit, [date(2026, 3, d) for d in range(1, 6)]) == 2
