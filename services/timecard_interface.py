from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from graph.state import ShiftRecord


@dataclass
class TransitionResult:
    success: bool
    timestamp: Optional[datetime]
    error: Optional[str]


class TimecardBackend(ABC):
    """タイムカード永続化サービスの抽象インターフェース"""

    @abstractmethod
    async def perform_transition(
        self, shift_id: str, action: str, timestamp: datetime
    ) -> TransitionResult:
        """打刻操作を記録する。競合などの拒否はsuccess=Falseで返す"""
        ...

    @abstractmethod
    async def fetch_shift(self, shift_id: str) -> Optional[ShiftRecord]:
        """サーバー上の最新のシフト記録を取得"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """リソース解放"""
        ...
