import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_CONFIG = {
    "scheduler": {
        "tick_interval_seconds": 30,
    },
    "time_tracking": {
        "overtime_hours": {
            "default": 12,
            "roles": {},
        },
        "min_break_minutes": {
            "default": 60,
            "roles": {"talent_escort": 30},
        },
        "max_hours_before_stop": 20,
        "break_grace_minutes": 0,
        "hide_control_when_complete_roles": ["talent_escort"],
    },
    "slack": {
        "enabled": True,
        "notify_channel": "",
        "fallback": "console",
    },
}


@dataclass(frozen=True)
class TrackingPolicy:
    """ロールごとに解決済みの勤怠ルール"""
    role: str
    overtime_hours: float
    min_break_minutes: float
    max_hours_before_stop: Optional[float]
    break_grace_minutes: float
    hide_when_complete: bool


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定とマージして返す"""
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        return _deep_merge(DEFAULT_CONFIG, user_config)
    return _deep_merge(DEFAULT_CONFIG, {})


def _by_role(section: dict, role: str) -> float:
    roles = section.get("roles") or {}
    return roles.get(role, section["default"])


def build_policy(config: dict, role: str) -> TrackingPolicy:
    """設定からロールに応じた勤怠ルールを組み立てる"""
    tt = config["time_tracking"]
    max_hours = tt.get("max_hours_before_stop")
    return TrackingPolicy(
        role=role,
        overtime_hours=float(_by_role(tt["overtime_hours"], role)),
        min_break_minutes=float(_by_role(tt["min_break_minutes"], role)),
        max_hours_before_stop=float(max_hours) if max_hours is not None else None,
        break_grace_minutes=float(tt.get("break_grace_minutes") or 0),
        hide_when_complete=role in (tt.get("hide_control_when_complete_roles") or []),
    )
