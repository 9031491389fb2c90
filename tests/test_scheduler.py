# tests/test_scheduler.py
from unittest.mock import AsyncMock, patch
from schedulers.scheduler import ShiftMonitorScheduler


def test_scheduler_creation():
    """スケジューラが正しく生成されること"""
    scheduler = ShiftMonitorScheduler(
        interval_seconds=30,
        job_func=AsyncMock(),
    )
    assert scheduler._interval == 30
    assert scheduler._scheduler.get_job("shift_monitor_tick") is not None


def test_scheduler_start_stop():
    """スケジューラの開始・停止"""
    scheduler = ShiftMonitorScheduler(interval_seconds=30, job_func=AsyncMock())

    with patch.object(scheduler._scheduler, "start") as mock_start:
        scheduler.start()
        mock_start.assert_called_once()

    with patch.object(scheduler._scheduler, "shutdown") as mock_shutdown:
        scheduler.stop()
        mock_shutdown.assert_called_once()
