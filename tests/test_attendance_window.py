from __future__ import annotations

from datetime import datetime

from fakes import make_lesson
from lesson_attendance.attendance.window import LessonTiming, WindowStatus, evaluate_window, lesson_timing


def test_window_open_ten_minutes_after_start():
    state = evaluate_window(make_lesson(), datetime(2024, 1, 15, 9, 10))

    assert state.status == WindowStatus.OPEN
    assert state.can_mark
    assert state.remaining_minutes == 20
    assert state.opens_at == datetime(2024, 1, 15, 9, 0)
    assert state.closes_at == datetime(2024, 1, 15, 9, 30)
    assert state.label == "Open (20 minutes left)"


def test_window_is_inclusive_at_both_ends_with_minute_resolution():
    lesson = make_lesson()

    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 0)).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 30)).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 30, 59)).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 31)).status == WindowStatus.CLOSED


def test_window_not_started_before_lesson():
    state = evaluate_window(make_lesson(), datetime(2024, 1, 15, 8, 59))

    assert state.status == WindowStatus.NOT_STARTED
    assert not state.can_mark
    assert state.opens_at == datetime(2024, 1, 15, 9, 0)


def test_window_not_today_on_other_days():
    lesson = make_lesson()

    # Tuesday and Sunday
    assert evaluate_window(lesson, datetime(2024, 1, 16, 9, 10)).status == WindowStatus.NOT_TODAY
    assert evaluate_window(lesson, datetime(2024, 1, 14, 9, 10)).status == WindowStatus.NOT_TODAY


def test_window_spanning_midnight_stays_open_next_day():
    lesson = make_lesson(start=23 * 60 + 50, window=30)

    state = evaluate_window(lesson, datetime(2024, 1, 16, 0, 10))

    assert state.status == WindowStatus.OPEN
    assert state.remaining_minutes == 10
    assert state.opens_at == datetime(2024, 1, 15, 23, 50)
    assert evaluate_window(lesson, datetime(2024, 1, 16, 0, 21)).status == WindowStatus.NOT_TODAY


def test_instant_lesson_opens_at_creation_and_closes_for_good():
    lesson = make_lesson(
        day_of_week=1, start=9 * 60 + 5, is_instant=True, created_at=datetime(2024, 1, 15, 9, 5, 30)
    )

    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 5)).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 35)).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 36)).status == WindowStatus.CLOSED
    # Instant lessons never recur.
    assert evaluate_window(lesson, datetime(2024, 1, 22, 9, 10)).status == WindowStatus.CLOSED


def test_auto_disable_off_keeps_window_open_until_lesson_ends():
    lesson = make_lesson(duration=60, window=30)
    now = datetime(2024, 1, 15, 9, 45)

    assert evaluate_window(lesson, now, auto_disable=True).status == WindowStatus.CLOSED
    assert evaluate_window(lesson, now, auto_disable=False).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 10, 1), auto_disable=False).status == WindowStatus.CLOSED


def test_missing_window_falls_back_to_default():
    lesson = make_lesson(window=0)

    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 14), default_window_minutes=15).status == WindowStatus.OPEN
    assert evaluate_window(lesson, datetime(2024, 1, 15, 9, 16), default_window_minutes=15).status == WindowStatus.CLOSED


def test_inactive_and_already_marked_take_precedence():
    now = datetime(2024, 1, 15, 9, 10)

    assert evaluate_window(make_lesson(is_active=False), now).status == WindowStatus.INACTIVE
    assert evaluate_window(make_lesson(is_active=False), now, already_marked=True).status == WindowStatus.INACTIVE
    marked = evaluate_window(make_lesson(), now, already_marked=True)
    assert marked.status == WindowStatus.ALREADY_MARKED
    assert marked.label == "Attendance already marked"


def test_window_state_to_dict():
    data = evaluate_window(make_lesson(), datetime(2024, 1, 15, 9, 29)).to_dict()

    assert data["status"] == "open"
    assert data["can_mark"] is True
    assert data["remaining_minutes"] == 1
    assert data["label"] == "Open (1 minute left)"
    assert data["closes_at"] == "2024-01-15T09:30:00"


def test_lesson_timing_within_the_week():
    monday = make_lesson(day_of_week=1)

    assert lesson_timing(monday, datetime(2024, 1, 15, 8, 0)) == LessonTiming.UPCOMING
    assert lesson_timing(monday, datetime(2024, 1, 15, 9, 30)) == LessonTiming.ONGOING
    assert lesson_timing(monday, datetime(2024, 1, 15, 10, 1)) == LessonTiming.PAST
    assert lesson_timing(make_lesson(day_of_week=3), datetime(2024, 1, 15, 9, 0)) == LessonTiming.UPCOMING
    assert lesson_timing(make_lesson(day_of_week=0), datetime(2024, 1, 15, 9, 0)) == LessonTiming.PAST


def test_lesson_timing_is_ongoing_for_yesterdays_late_occurrence():
    saturday_night = make_lesson(day_of_week=6, start=23 * 60 + 50)

    assert lesson_timing(saturday_night, datetime(2024, 1, 21, 0, 10)) == LessonTiming.ONGOING
    assert lesson_timing(saturday_night, datetime(2024, 1, 21, 0, 50)) == LessonTiming.ONGOING
    assert lesson_timing(saturday_night, datetime(2024, 1, 21, 0, 51)) == LessonTiming.UPCOMING
    assert lesson_timing(saturday_night, datetime(2024, 1, 20, 23, 55)) == LessonTiming.ONGOING
