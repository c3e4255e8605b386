"""
健康分析结果Schemas
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

NO_DATA = "no_data"
UNKNOWN = "unknown"


class DateRange(BaseModel):
    """分析区间"""

    start: datetime
    end: datetime


class RecoveryTrend(BaseModel):
    """恢复趋势"""

    trend: str = Field(..., description="improving | declining | stable | no_data")
    average_score: Optional[float] = None
    weekly_change: Optional[float] = Field(None, description="后半段均值 - 前半段均值")
    consistency_score: Optional[float] = Field(None, description="1 - stdev/100，下限0")
    last_seven_days: Optional[List[float]] = None

    @property
    def has_data(self) -> bool:
        return self.trend != NO_DATA


class SleepAnalysis(BaseModel):
    """睡眠分析"""

    sleep_quality_trend: str = Field(..., description="improving | declining | stable | no_data")
    average_hours: Optional[float] = None
    average_efficiency: Optional[float] = Field(None, description="0-1")
    average_debt: Optional[float] = Field(None, description="小时")
    consistency_score: Optional[float] = None
    disturbance_frequency: Optional[float] = None
    optimal_bedtime: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.sleep_quality_trend != NO_DATA


class StressIndicators(BaseModel):
    """生理压力指标"""

    stress_level: str = Field(..., description="low | moderate | high | critical | unknown")
    elevated_hrv_days: Optional[int] = None
    high_resting_hr_days: Optional[int] = None
    poor_recovery_streak: Optional[int] = None
    physiological_stress: Optional[float] = Field(None, description="0-100")

    @property
    def has_data(self) -> bool:
        return self.stress_level != UNKNOWN


class ActivityPatterns(BaseModel):
    """活动模式"""

    weekly_workouts: int = 0
    average_strain: float = 0.0
    workout_consistency: float = 0.0
    overtraining_risk: str = Field(UNKNOWN, description="low | moderate | high | unknown")
    active_recovery_days: int = 0
    intensity_balance: str = Field(
        UNKNOWN, description="high_intensity_focused | low_intensity_focused | balanced | unknown"
    )

    @property
    def has_data(self) -> bool:
        return self.overtraining_risk != UNKNOWN


class StrainTrend(BaseModel):
    """周期负荷趋势"""

    sessions: int = 0
    average_strain: Optional[float] = None
    min_strain: Optional[float] = None
    max_strain: Optional[float] = None
    strains: List[float] = Field(default_factory=list)


class TherapyInsight(BaseModel):
    """咨询讨论要点"""

    category: str = Field(..., description="recovery | sleep | stress | activity")
    insight: str
    severity: str = Field(..., description="info | concern | alert")
    actionable: bool = True
    suggestion: Optional[str] = None


class RedFlag(BaseModel):
    """需要立即关注的高危信号"""

    type: str
    description: str
    severity: str = Field(..., description="moderate | high | critical")
    detected_at: datetime
    recommendation: str


class HealthSummary(BaseModel):
    """综合健康摘要（每次请求重新计算）"""

    user_id: int
    date_range: DateRange
    recovery_trend: RecoveryTrend
    sleep_analysis: SleepAnalysis
    stress_indicators: StressIndicators
    activity_patterns: ActivityPatterns
    therapy_insights: List[TherapyInsight] = Field(default_factory=list)
    red_flags: List[RedFlag] = Field(default_factory=list)
