"""
数据模型
"""
from whoop_insight.models.whoop import (
    RECORD_MODELS,
    RecordKind,
    WhoopCycle,
    WhoopRecovery,
    WhoopSleep,
    WhoopUser,
    WhoopWorkout,
)

__all__ = [
    "RECORD_MODELS",
    "RecordKind",
    "WhoopCycle",
    "WhoopRecovery",
    "WhoopSleep",
    "WhoopUser",
    "WhoopWorkout",
]
