from dataclasses import replace
from datetime import date, datetime, timedelta
from unittest.mock import patch

from graph.state import ShiftRecord, CHECKED_IN, ON_BREAK, BREAK_ENDED, CHECKED_OUT
from services.shift_clock import ShiftClock

T0 = datetime(2026, 2, 22, 9, 0)


def _record(**overrides):
    record = ShiftRecord.new("u1", "p1", date(2026, 2, 22))
    return replace(record, **overrides)


def test_elapsed_zero():
    """同じ時刻同士の経過時間は0"""
    clock = ShiftClock(now=lambda: T0)
    assert clock.elapsed_hours(T0, T0) == 0


def test_elapsed_monotonic():
    """終了時刻が進むほど経過時間は増える"""
    clock = ShiftClock(now=lambda: T0)
    values = [clock.elapsed_hours(T0, T0 + timedelta(minutes=m)) for m in (0, 1, 30, 90, 600)]
    assert values == sorted(values)
    assert values[3] == 1.5


def test_elapsed_never_negative():
    """終了が開始より前でも負にならない"""
    clock = ShiftClock(now=lambda: T0)
    assert clock.elapsed_hours(T0, T0 - timedelta(hours=1)) == 0


def test_elapsed_defaults_to_now():
    """終了省略時は注入された現在時刻を使う"""
    clock = ShiftClock(now=lambda: T0 + timedelta(hours=2))
    assert clock.elapsed_hours(T0) == 2


def test_default_now_is_patchable():
    """時計未注入時はモジュールの_nowを使う"""
    with patch("services.shift_clock._now", return_value=T0 + timedelta(hours=3)):
        assert ShiftClock().elapsed_hours(T0) == 3


def test_is_overtime_strict():
    """閾値ちょうどは残業ではない"""
    for threshold in (0, 8, 12):
        assert ShiftClock.is_overtime(threshold, threshold) is False
        assert ShiftClock.is_overtime(threshold - 0.5, threshold) is False
        assert ShiftClock.is_overtime(threshold + 0.01, threshold) is True


def test_shift_duration_not_started():
    clock = ShiftClock(now=lambda: T0)
    assert clock.shift_duration(_record()) == 0


def test_shift_duration_subtracts_break():
    """勤務時間から休憩時間が引かれること"""
    record = _record(
        status=CHECKED_OUT,
        check_in_time=T0,
        break_start_time=T0 + timedelta(hours=3),
        break_end_time=T0 + timedelta(hours=4),
        check_out_time=T0 + timedelta(hours=9),
    )
    clock = ShiftClock(now=lambda: T0 + timedelta(hours=20))
    assert clock.shift_duration(record) == 8


def test_shift_duration_open_shift_on_break():
    """休憩中は休憩開始以降の時間を数えない"""
    record = _record(
        status=ON_BREAK,
        check_in_time=T0,
        break_start_time=T0 + timedelta(hours=2),
    )
    clock = ShiftClock(now=lambda: T0 + timedelta(hours=3))
    assert clock.shift_duration(record) == 2
    assert clock.break_elapsed_minutes(record) == 60


def test_break_elapsed_only_on_break():
    """休憩中以外は休憩経過なし"""
    record = _record(
        status=BREAK_ENDED,
        check_in_time=T0,
        break_start_time=T0 + timedelta(hours=2),
        break_end_time=T0 + timedelta(hours=3),
    )
    clock = ShiftClock(now=lambda: T0 + timedelta(hours=4))
    assert clock.break_elapsed_minutes(record) is None
    assert clock.shift_duration(record) == 3


def test_start_variance():
    """予定より15分遅れて出勤"""
    record = _record(
        status=CHECKED_IN,
        check_in_time=T0 + timedelta(minutes=15),
        scheduled_start_time=T0,
    )
    assert ShiftClock.start_variance_minutes(record) == 15
    assert ShiftClock.start_variance_minutes(_record()) is None


def test_break_end_with_grace():
    """最低休憩の直後なら最低休憩終了時刻に丸める"""
    start = T0
    min_end = T0 + timedelta(minutes=30)
    assert ShiftClock.break_end_with_grace(start, min_end + timedelta(minutes=3), 30, 5) == min_end
    late = min_end + timedelta(minutes=10)
    assert ShiftClock.break_end_with_grace(start, late, 30, 5) == late
    early = min_end - timedelta(minutes=2)
    assert ShiftClock.break_end_with_grace(start, early, 30, 5) == early
    assert ShiftClock.break_end_with_grace(start, min_end + timedelta(minutes=3), 30, 0) == min_end + timedelta(minutes=3)
