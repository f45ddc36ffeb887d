from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from site_workforce.attendance.hours import compute_hours
from support import WORK_DAY, on_day


def _hours(clock_out, *, approved=False, lunch=(on_day(12, 0), on_day(13, 0)), clock_in=on_day(7, 30)):
    return compute_hours(
        clock_in_at=clock_in,
        clock_out_at=clock_out,
        lunch_start_at=lunch[0],
        lunch_end_at=lunch[1],
        overtime_approved=approved,
    )


def test_standard_day_is_all_regular():
    h = _hours(on_day(17, 0))

    assert h.regular_hours == Decimal("8.50")
    assert h.ot_hours == Decimal("0.00")
    assert h.unapproved_overtime is False


def test_staying_within_logout_grace_is_not_overtime():
    h = _hours(on_day(18, 30))

    assert h.regular_hours == Decimal("10.00")
    assert h.ot_hours == Decimal("0.00")
    assert h.unapproved_ot_hours == Decimal("0.00")


def test_approved_overtime_counts_time_after_shift_end():
    h = _hours(on_day(20, 0), approved=True)

    assert h.regular_hours == Decimal("8.50")
    assert h.ot_hours == Decimal("3.00")
    assert h.unapproved_overtime is False


def test_unapproved_overtime_is_kept_aside():
    h = _hours(on_day(20, 0))

    assert h.regular_hours == Decimal("8.50")
    assert h.ot_hours == Decimal("0.00")
    assert h.unapproved_ot_hours == Decimal("3.00")
    assert h.unapproved_overtime is True


def test_without_lunch_and_rounding():
    h = _hours(on_day(17, 20), lunch=(None, None))

    # 9h50m
    assert h.regular_hours == Decimal("9.83")


def test_late_arrival_after_shift_end_caps_overtime_at_worked_time():
    h = _hours(on_day(19, 30), approved=True, lunch=(None, None), clock_in=on_day(18, 0))

    assert h.regular_hours == Decimal("0.00")
    assert h.ot_hours == Decimal("1.50")


def test_overtime_after_midnight_is_measured_on_the_work_date():
    h = compute_hours(
        clock_in_at=on_day(7, 0),
        clock_out_at=datetime(2026, 3, 3, 1, 0),
        lunch_start_at=None,
        lunch_end_at=None,
        overtime_approved=True,
        work_date=WORK_DAY,
    )

    assert h.ot_hours == Decimal("8.00")
    assert h.regular_hours == Decimal("10.00")
