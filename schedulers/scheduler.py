# schedulers/scheduler.py
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from typing import Awaitable, Callable


class ShiftMonitorScheduler:
    """APSchedulerによるシフト状態の定期再計算"""

    def __init__(self, interval_seconds: int, job_func: Callable[[], Awaitable]):
        self._interval = interval_seconds
        self._job_func = job_func
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._job_func,
            trigger=IntervalTrigger(seconds=self._interval),
            id="shift_monitor_tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def start(self):
        """スケジューラ開始（イベントループ内で呼ぶ）"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
