"""
Whoop API v2 记录模型

所有记录只读：由Whoop生成，本系统每次请求重新拉取，不做本地持久化。
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

SCORED = "SCORED"

MILLIS_PER_HOUR = 1000 * 60 * 60


class RecordKind(str, Enum):
    """记录类型"""

    RECOVERY = "recovery"
    SLEEP = "sleep"
    WORKOUT = "workout"
    CYCLE = "cycle"


class WhoopModel(BaseModel):
    """Whoop模型基类（不可变，忽略未知字段）"""

    model_config = ConfigDict(frozen=True, extra="ignore")


class WhoopUser(WhoopModel):
    """用户基本信息"""

    user_id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class WhoopRecord(WhoopModel):
    """记录公共字段"""

    user_id: int
    created_at: datetime
    updated_at: datetime
    score_state: str = "PENDING_SCORE"

    @property
    def is_scored(self) -> bool:
        """评分已完成"""
        return self.score_state == SCORED and getattr(self, "score", None) is not None


# ============ Recovery ============

class RecoveryScore(WhoopModel):
    user_calibrating: bool = False
    recovery_score: float = 0.0
    resting_heart_rate: float = 0.0
    hrv_rmssd_milli: float = 0.0
    spo2_percentage: Optional[float] = None
    skin_temp_celsius: Optional[float] = None


class WhoopRecovery(WhoopRecord):
    """恢复记录（以cycle_id标识）"""

    cycle_id: int
    sleep_id: Optional[str] = None
    score: Optional[RecoveryScore] = None

    @property
    def id(self) -> int:
        return self.cycle_id


# ============ Sleep ============

class SleepStageSummary(WhoopModel):
    total_in_bed_time_milli: int = 0
    total_awake_time_milli: int = 0
    total_no_data_time_milli: int = 0
    total_light_sleep_time_milli: int = 0
    total_slow_wave_sleep_time_milli: int = 0
    total_rem_sleep_time_milli: int = 0
    sleep_cycle_count: int = 0
    disturbance_count: int = 0


class SleepNeeded(WhoopModel):
    baseline_milli: int = 0
    need_from_sleep_debt_milli: int = 0
    need_from_recent_strain_milli: int = 0
    need_from_recent_nap_milli: int = 0


class SleepScore(WhoopModel):
    stage_summary: SleepStageSummary = SleepStageSummary()
    sleep_needed: SleepNeeded = SleepNeeded()
    respiratory_rate: Optional[float] = None
    sleep_performance_percentage: Optional[float] = None
    sleep_consistency_percentage: Optional[float] = None
    sleep_efficiency_percentage: float = 0.0


class WhoopSleep(WhoopRecord):
    """睡眠记录"""

    id: str
    start: datetime
    end: datetime
    timezone_offset: Optional[str] = None
    nap: bool = False
    score: Optional[SleepScore] = None

    @property
    def sleep_hours(self) -> float:
        """实际睡眠时长（在床时间 - 清醒时间），小时"""
        if self.score is None:
            return 0.0
        stages = self.score.stage_summary
        return (stages.total_in_bed_time_milli - stages.total_awake_time_milli) / MILLIS_PER_HOUR

    @property
    def needed_hours(self) -> float:
        """睡眠需求（基线 + 睡眠债务带来的需求），小时"""
        if self.score is None:
            return 0.0
        needed = self.score.sleep_needed
        return (needed.baseline_milli + needed.need_from_sleep_debt_milli) / MILLIS_PER_HOUR


# ============ Workout ============

class ZoneDurations(WhoopModel):
    zone_zero_milli: int = 0
    zone_one_milli: int = 0
    zone_two_milli: int = 0
    zone_three_milli: int = 0
    zone_four_milli: int = 0
    zone_five_milli: int = 0


class WorkoutScore(WhoopModel):
    strain: float = 0.0
    average_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None
    kilojoule: Optional[float] = None
    percent_recorded: Optional[float] = None
    distance_meter: Optional[float] = None
    altitude_gain_meter: Optional[float] = None
    altitude_change_meter: Optional[float] = None
    zone_durations: Optional[ZoneDurations] = None


class WhoopWorkout(WhoopRecord):
    """训练记录"""

    id: str
    start: datetime
    end: datetime
    timezone_offset: Optional[str] = None
    sport_name: Optional[str] = None
    score: Optional[WorkoutScore] = None


# ============ Cycle ============

class CycleScore(WhoopModel):
    strain: float = 0.0
    kilojoule: Optional[float] = None
    average_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None


class WhoopCycle(WhoopRecord):
    """生理周期记录（通常一天一条）"""

    id: int
    start: datetime
    end: Optional[datetime] = None  # 当前进行中的周期没有结束时间
    timezone_offset: Optional[str] = None
    score: Optional[CycleScore] = None


RECORD_MODELS = {
    RecordKind.RECOVERY: WhoopRecovery,
    RecordKind.SLEEP: WhoopSleep,
    RecordKind.WORKOUT: WhoopWorkout,
    RecordKind.CYCLE: WhoopCycle,
}
