class TimeTrackingError(Exception):
    """勤怠ステートマシンの基底例外"""


class InvalidTransition(TimeTrackingError):
    """現在のステータスでは許可されない操作（I/O前に拒否）"""

    def __init__(self, action: str, status: str):
        self.action = action
        self.status = status
        super().__init__(f"{status} から {action} は実行できません")


class PersistenceFailure(TimeTrackingError):
    """永続化処理の失敗。状態は変更されず、再試行可能"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class StaleState(TimeTrackingError):
    """ローカルの状態がサーバー側の最新状態と食い違っている"""

    def __init__(self, local_status: str, server_status: str):
        self.local_status = local_status
        self.server_status = server_status
        super().__init__(
            f"サーバー上の状態が更新されています（ローカル: {local_status} / サーバー: {server_status}）"
        )
