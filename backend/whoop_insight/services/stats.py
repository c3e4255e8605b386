"""
统计辅助函数与记录预处理

分析引擎和规则引擎共用。
"""
from typing import List, Sequence

import numpy as np

from whoop_insight.models.whoop import WhoopRecovery, WhoopSleep


def mean(values: Sequence[float]) -> float:
    """均值，空序列为0"""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def stdev(values: Sequence[float]) -> float:
    """样本标准差（n-1），少于2个值为0"""
    if len(values) <= 1:
        return 0.0
    return float(np.std(values, ddof=1))


def consistency(values: Sequence[float], scale: float) -> float:
    """一致性评分 = 1 - stdev/scale，下限0"""
    return max(0.0, 1.0 - stdev(values) / scale)


def scored_recoveries(recoveries: Sequence[WhoopRecovery]) -> List[WhoopRecovery]:
    """已评分的恢复记录，按创建时间升序"""
    return sorted((r for r in recoveries if r.is_scored), key=lambda r: r.created_at)


def scored_sleeps(sleeps: Sequence[WhoopSleep]) -> List[WhoopSleep]:
    """已评分的夜间睡眠（不含小睡），按创建时间升序"""
    return sorted((s for s in sleeps if s.is_scored and not s.nap), key=lambda s: s.created_at)
