"""
健康数据统计分析引擎

纯函数，无I/O、无缓存：输入一批已拉取的记录，输出趋势、睡眠、压力、活动指标。
空输入返回 no_data / unknown，不抛异常。
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from whoop_insight.models.whoop import WhoopCycle, WhoopRecovery, WhoopSleep, WhoopWorkout
from whoop_insight.schemas.analysis import (
    NO_DATA,
    UNKNOWN,
    ActivityPatterns,
    DateRange,
    HealthSummary,
    RecoveryTrend,
    SleepAnalysis,
    StrainTrend,
    StressIndicators,
)
from whoop_insight.services.insights import detect_red_flags, generate_therapy_insights
from whoop_insight.services.stats import consistency, mean, scored_recoveries, scored_sleeps

logger = logging.getLogger(__name__)

# 趋势判断至少需要的样本数
MIN_TREND_SAMPLES = 7
RECOVERY_TREND_THRESHOLD = 5.0
SLEEP_EFFICIENCY_TREND_THRESHOLD = 0.05
LAST_DAYS_WINDOW = 7

# 压力指标阈值
ELEVATED_HRV_RATIO = 1.2
HIGH_RHR_DELTA = 10.0
POOR_RECOVERY_THRESHOLD = 33.0
LOW_RECOVERY_BASELINE = 50.0

# 活动指标阈值
HIGH_INTENSITY_STRAIN = 15.0
ACTIVE_RECOVERY_STRAIN = 10.0

DEFAULT_BEDTIME = "22:00"
SECONDS_PER_DAY = 86400.0


def split_half_change(values: Sequence[float]) -> Optional[float]:
    """后半段均值 - 前半段均值（从中点切分），样本不足时返回None"""
    if len(values) < MIN_TREND_SAMPLES:
        return None
    middle = len(values) // 2
    return mean(values[middle:]) - mean(values[:middle])


def classify_change(change: Optional[float], threshold: float) -> str:
    if change is None:
        return "stable"
    if change > threshold:
        return "improving"
    if change < -threshold:
        return "declining"
    return "stable"


def classify_stress_level(score: float) -> str:
    """
    压力等级

    >70 critical, >50 high, >30 moderate, 其余 low
    """
    if score > 70:
        return "critical"
    if score > 50:
        return "high"
    if score > 30:
        return "moderate"
    return "low"


# ============ 分析 ============

def analyze_recovery_trend(recoveries: Sequence[WhoopRecovery]) -> RecoveryTrend:
    """恢复分数趋势"""
    records = scored_recoveries(recoveries)
    if not records:
        return RecoveryTrend(trend=NO_DATA)

    scores = [r.score.recovery_score for r in records]
    change = split_half_change(scores)

    return RecoveryTrend(
        trend=classify_change(change, RECOVERY_TREND_THRESHOLD),
        average_score=mean(scores),
        weekly_change=change if change is not None else 0.0,
        consistency_score=consistency(scores, 100.0),
        last_seven_days=scores[-LAST_DAYS_WINDOW:],
    )


def analyze_sleep_patterns(sleeps: Sequence[WhoopSleep]) -> SleepAnalysis:
    """睡眠质量与规律性"""
    records = scored_sleeps(sleeps)
    if not records:
        return SleepAnalysis(sleep_quality_trend=NO_DATA)

    hours = [s.sleep_hours for s in records]
    efficiencies = [s.score.sleep_efficiency_percentage / 100.0 for s in records]
    debts = [s.needed_hours - s.sleep_hours for s in records]
    disturbances = [s.score.stage_summary.disturbance_count for s in records]

    change = split_half_change(efficiencies)

    return SleepAnalysis(
        sleep_quality_trend=classify_change(change, SLEEP_EFFICIENCY_TREND_THRESHOLD),
        average_hours=mean(hours),
        average_efficiency=mean(efficiencies),
        average_debt=mean(debts),
        consistency_score=consistency(hours, 8.0),  # 以8小时为基准归一化
        disturbance_frequency=float(sum(disturbances) // len(disturbances)),
        optimal_bedtime=DEFAULT_BEDTIME,
    )


def analyze_stress_indicators(recoveries: Sequence[WhoopRecovery]) -> StressIndicators:
    """
    生理压力指标

    按时间顺序遍历，HRV/静息心率基线取当前记录之前全部记录的均值。
    """
    records = scored_recoveries(recoveries)
    if not records:
        return StressIndicators(stress_level=UNKNOWN)

    hrv_history: List[float] = []
    rhr_history: List[float] = []
    scores: List[float] = []

    elevated_hrv_days = 0
    high_rhr_days = 0
    longest_poor_streak = 0
    current_poor_streak = 0

    for record in records:
        hrv = record.score.hrv_rmssd_milli
        rhr = record.score.resting_heart_rate
        score = record.score.recovery_score

        if hrv_history and hrv > mean(hrv_history) * ELEVATED_HRV_RATIO:
            elevated_hrv_days += 1
        if rhr_history and rhr > mean(rhr_history) + HIGH_RHR_DELTA:
            high_rhr_days += 1

        if score < POOR_RECOVERY_THRESHOLD:
            current_poor_streak += 1
            longest_poor_streak = max(longest_poor_streak, current_poor_streak)
        else:
            current_poor_streak = 0

        hrv_history.append(hrv)
        rhr_history.append(rhr)
        scores.append(score)

    total = len(records)
    stress = 0.0
    stress += elevated_hrv_days / total * 30  # 30%权重
    stress += high_rhr_days / total * 25  # 25%权重
    stress += longest_poor_streak / 7.0 * 25  # 25%权重，不封顶
    average_recovery = mean(scores)
    if average_recovery < LOW_RECOVERY_BASELINE:
        stress += (LOW_RECOVERY_BASELINE - average_recovery) / LOW_RECOVERY_BASELINE * 20  # 20%权重

    return StressIndicators(
        stress_level=classify_stress_level(stress),
        elevated_hrv_days=elevated_hrv_days,
        high_resting_hr_days=high_rhr_days,
        poor_recovery_streak=longest_poor_streak,
        physiological_stress=stress,
    )


def estimate_weekly_workouts(workouts: Sequence[WhoopWorkout]) -> int:
    """按观测跨度外推每周训练次数，跨度为0时返回原始次数"""
    count = len(workouts)
    if count <= 1:
        return count
    span_days = (workouts[-1].start - workouts[0].start).total_seconds() / SECONDS_PER_DAY
    if span_days <= 0:
        return count
    return int(count * 7.0 / span_days)


def analyze_activity_patterns(
    workouts: Sequence[WhoopWorkout], cycles: Sequence[WhoopCycle]
) -> ActivityPatterns:
    """训练频率、负荷与强度分布"""
    scored_workouts = sorted((w for w in workouts if w.is_scored), key=lambda w: w.start)
    scored_cycles = [c for c in cycles if c.is_scored]

    if not scored_workouts and not scored_cycles:
        return ActivityPatterns()

    weekly_workouts = estimate_weekly_workouts(scored_workouts)

    strains = [w.score.strain for w in scored_workouts] + [c.score.strain for c in scored_cycles]
    average_strain = mean(strains)

    workout_consistency = 0.0
    if len(scored_workouts) > 1:
        gaps = [
            (current.start - previous.start).total_seconds() / SECONDS_PER_DAY
            for previous, current in zip(scored_workouts, scored_workouts[1:])
        ]
        workout_consistency = consistency(gaps, 7.0)  # 以一周为基准归一化

    if average_strain > 18 and weekly_workouts > 6:
        overtraining_risk = "high"
    elif average_strain > 15 and weekly_workouts > 5:
        overtraining_risk = "moderate"
    else:
        overtraining_risk = "low"

    active_recovery_days = sum(1 for s in strains if 0 < s < ACTIVE_RECOVERY_STRAIN)

    intensity_balance = "balanced"
    if strains:
        high_ratio = sum(1 for s in strains if s > HIGH_INTENSITY_STRAIN) / len(strains)
        if high_ratio > 0.5:
            intensity_balance = "high_intensity_focused"
        elif high_ratio < 0.2:
            intensity_balance = "low_intensity_focused"

    return ActivityPatterns(
        weekly_workouts=weekly_workouts,
        average_strain=average_strain,
        workout_consistency=workout_consistency,
        overtraining_risk=overtraining_risk,
        active_recovery_days=active_recovery_days,
        intensity_balance=intensity_balance,
    )


def analyze_strain_trend(cycles: Sequence[WhoopCycle]) -> StrainTrend:
    """周期负荷统计"""
    strains = [c.score.strain for c in sorted(cycles, key=lambda c: c.start) if c.is_scored]
    if not strains:
        return StrainTrend()
    return StrainTrend(
        sessions=len(strains),
        average_strain=mean(strains),
        min_strain=min(strains),
        max_strain=max(strains),
        strains=strains,
    )


def analyze_health_summary(bundle, detected_at: Optional[datetime] = None) -> HealthSummary:
    """
    生成综合健康摘要

    Args:
        bundle: HealthDataBundle（四类记录 + 用户 + 查询窗口）
        detected_at: 红旗检测时间（默认当前时间）

    Returns:
        HealthSummary
    """
    recovery_trend = analyze_recovery_trend(bundle.recoveries)
    sleep_analysis = analyze_sleep_patterns(bundle.sleeps)
    stress_indicators = analyze_stress_indicators(bundle.recoveries)
    activity_patterns = analyze_activity_patterns(bundle.workouts, bundle.cycles)

    therapy_insights = generate_therapy_insights(
        recovery_trend, sleep_analysis, stress_indicators, activity_patterns
    )
    red_flags = detect_red_flags(
        bundle.recoveries, bundle.sleeps, stress_indicators, detected_at=detected_at
    )

    logger.info(
        f"健康分析完成: user_id={bundle.user_id}, recovery={recovery_trend.trend}, "
        f"stress={stress_indicators.stress_level}, insights={len(therapy_insights)}, "
        f"red_flags={len(red_flags)}"
    )

    return HealthSummary(
        user_id=bundle.user_id,
        date_range=DateRange(start=bundle.window.start, end=bundle.window.end),
        recovery_trend=recovery_trend,
        sleep_analysis=sleep_analysis,
        stress_indicators=stress_indicators,
        activity_patterns=activity_patterns,
        therapy_insights=therapy_insights,
        red_flags=red_flags,
    )
