from datetime import date, datetime

import pytest

from graph.state import ShiftRecord, CHECKED_IN, CHECK_IN, START_BREAK, CHECK_OUT
from services.memory_timecard import InMemoryTimecardBackend

T0 = datetime(2026, 2, 22, 9, 0)
SHIFT_ID = "u1:p1:2026-02-22"


@pytest.mark.asyncio
async def test_check_in_creates_shift():
    """未登録シフトへの出勤で記録が作成されること"""
    backend = InMemoryTimecardBackend(verbose=False)
    result = await backend.perform_transition(SHIFT_ID, CHECK_IN, T0)
    assert result.success is True
    assert result.timestamp == T0
    assert result.error is None

    record = await backend.fetch_shift(SHIFT_ID)
    assert record.status == CHECKED_IN
    assert record.shift_date == date(2026, 2, 22)
    assert record.check_in_time == T0


@pytest.mark.asyncio
async def test_unknown_shift_rejected():
    backend = InMemoryTimecardBackend(verbose=False)
    result = await backend.perform_transition(SHIFT_ID, START_BREAK, T0)
    assert result.success is False
    assert result.error == "shift not found"


@pytest.mark.asyncio
async def test_conflict():
    """サーバー側の状態で許可されない操作はconflict"""
    backend = InMemoryTimecardBackend(verbose=False)
    backend.register(ShiftRecord.new("u1", "p1", date(2026, 2, 22)))
    result = await backend.perform_transition(SHIFT_ID, CHECK_OUT, T0)
    assert result.success is False
    assert result.error == "conflict"


@pytest.mark.asyncio
async def test_register_keeps_existing():
    backend = InMemoryTimecardBackend(verbose=False)
    await backend.perform_transition(SHIFT_ID, CHECK_IN, T0)
    backend.register(ShiftRecord.new("u1", "p1", date(2026, 2, 22)))
    record = await backend.fetch_shift(SHIFT_ID)
    assert record.status == CHECKED_IN


@pytest.mark.asyncio
async def test_verbose_log(capsys):
    backend = InMemoryTimecardBackend()
    await backend.perform_transition(SHIFT_ID, CHECK_IN, T0)
    assert "[InMemoryTimecard] check_in: 09:00" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_close():
    backend = InMemoryTimecardBackend(verbose=False)
    await backend.perform_transition(SHIFT_ID, CHECK_IN, T0)
    await backend.close()
    assert await backend.fetch_shift(SHIFT_ID) is None
