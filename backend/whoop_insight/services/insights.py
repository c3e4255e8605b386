"""
咨询要点与红旗规则引擎

规则按表中顺序依次求值，输出顺序稳定。输入为 no_data 时规则不触发。
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, NamedTuple, Optional, Sequence

from whoop_insight.models.whoop import WhoopRecovery, WhoopSleep
from whoop_insight.schemas.analysis import (
    ActivityPatterns,
    RecoveryTrend,
    RedFlag,
    SleepAnalysis,
    StressIndicators,
    TherapyInsight,
)
from whoop_insight.services.stats import mean, scored_recoveries, scored_sleeps

logger = logging.getLogger(__name__)

RECENT_SLEEP_NIGHTS = 3
SEVERE_SLEEP_HOURS = 5.0
RECENT_RECOVERY_DAYS = 3
BASELINE_RECOVERY_DAYS = 7
DRAMATIC_DECLINE_POINTS = 30.0
MIN_RECOVERIES_FOR_DECLINE = 7


class InsightContext(NamedTuple):
    recovery: RecoveryTrend
    sleep: SleepAnalysis
    stress: StressIndicators
    activity: ActivityPatterns


class InsightRule(NamedTuple):
    name: str
    applies: Callable[[InsightContext], bool]
    build: Callable[[InsightContext], TherapyInsight]


# ============ 咨询要点 ============

def _sleep_hours_severity(ctx: InsightContext) -> str:
    return "alert" if ctx.sleep.average_hours < 6 else "concern"


INSIGHT_RULES: List[InsightRule] = [
    InsightRule(
        "declining_recovery",
        lambda ctx: ctx.recovery.trend == "declining",
        lambda ctx: TherapyInsight(
            category="recovery",
            insight=(
                f"Recovery scores have declined by {abs(ctx.recovery.weekly_change):.1f}% recently, "
                "which may indicate increased stress or inadequate rest"
            ),
            severity="concern",
            suggestion="Consider discussing stress management techniques and sleep hygiene improvements",
        ),
    ),
    InsightRule(
        "variable_recovery",
        lambda ctx: ctx.recovery.has_data and ctx.recovery.consistency_score < 0.6,
        lambda ctx: TherapyInsight(
            category="recovery",
            insight="Recovery scores show high variability, suggesting inconsistent stress levels or sleep patterns",
            severity="info",
            suggestion="Explore daily routine consistency and identify potential stressors causing fluctuations",
        ),
    ),
    InsightRule(
        "short_sleep",
        lambda ctx: ctx.sleep.has_data and ctx.sleep.average_hours < 7,
        lambda ctx: TherapyInsight(
            category="sleep",
            insight=f"Average sleep duration of {ctx.sleep.average_hours:.1f} hours is below recommended 7-9 hours",
            severity=_sleep_hours_severity(ctx),
            suggestion="Discuss sleep barriers and develop a personalized sleep improvement plan",
        ),
    ),
    InsightRule(
        "low_sleep_efficiency",
        lambda ctx: ctx.sleep.has_data and ctx.sleep.average_efficiency < 0.85,
        lambda ctx: TherapyInsight(
            category="sleep",
            insight=(
                f"Sleep efficiency of {ctx.sleep.average_efficiency * 100:.1f}% "
                "indicates difficulty staying asleep"
            ),
            severity="concern",
            suggestion="Explore factors affecting sleep quality such as anxiety, environment, or habits",
        ),
    ),
    InsightRule(
        "declining_sleep_quality",
        lambda ctx: ctx.sleep.sleep_quality_trend == "declining",
        lambda ctx: TherapyInsight(
            category="sleep",
            insight="Sleep quality has been declining, which may impact mood and cognitive function",
            severity="concern",
            suggestion="Investigate recent life changes or stressors that might be affecting sleep",
        ),
    ),
    InsightRule(
        "elevated_stress",
        lambda ctx: ctx.stress.stress_level in ("high", "critical"),
        lambda ctx: TherapyInsight(
            category="stress",
            insight="Physiological markers indicate elevated stress levels that may be impacting overall well-being",
            severity="alert",
            suggestion="Prioritize stress reduction techniques and consider addressing underlying stressors",
        ),
    ),
    InsightRule(
        "poor_recovery_streak",
        lambda ctx: ctx.stress.has_data and ctx.stress.poor_recovery_streak >= 3,
        lambda ctx: TherapyInsight(
            category="stress",
            insight=(
                f"Extended period of poor recovery ({ctx.stress.poor_recovery_streak} days) "
                "suggests chronic stress or burnout"
            ),
            severity="alert",
            suggestion="Evaluate workload, relationships, and coping mechanisms for signs of overwhelm",
        ),
    ),
    InsightRule(
        "overtraining",
        lambda ctx: ctx.activity.overtraining_risk == "high",
        lambda ctx: TherapyInsight(
            category="activity",
            insight="High training load may be contributing to physical and mental stress",
            severity="concern",
            suggestion="Discuss the role of exercise in stress management and potential need for recovery time",
        ),
    ),
    InsightRule(
        "no_activity",
        lambda ctx: ctx.activity.weekly_workouts == 0,
        lambda ctx: TherapyInsight(
            category="activity",
            insight="Lack of recorded physical activity may indicate low energy or motivation",
            severity="info",
            suggestion="Explore barriers to physical activity and discuss gentle movement as mood support",
        ),
    ),
]


def generate_therapy_insights(
    recovery: RecoveryTrend,
    sleep: SleepAnalysis,
    stress: StressIndicators,
    activity: ActivityPatterns,
) -> List[TherapyInsight]:
    """按规则表顺序生成咨询讨论要点"""
    ctx = InsightContext(recovery, sleep, stress, activity)
    insights = [rule.build(ctx) for rule in INSIGHT_RULES if rule.applies(ctx)]
    logger.debug(f"生成咨询要点: {[i.category for i in insights]}")
    return insights


# ============ 红旗 ============

def _chronic_stress(stress, recoveries, sleeps, detected_at) -> Optional[RedFlag]:
    if stress.stress_level != "critical":
        return None
    return RedFlag(
        type="chronic_stress",
        description="Multiple physiological stress markers indicate potential burnout or chronic stress condition",
        severity="critical",
        detected_at=detected_at,
        recommendation="Consider immediate stress intervention and possible medical evaluation",
    )


def _extended_poor_recovery(stress, recoveries, sleeps, detected_at) -> Optional[RedFlag]:
    if not stress.has_data or stress.poor_recovery_streak < 7:
        return None
    return RedFlag(
        type="extended_poor_recovery",
        description=f"Recovery scores have been poor for {stress.poor_recovery_streak} consecutive days",
        severity="high",
        detected_at=detected_at,
        recommendation="Evaluate for signs of depression, anxiety, or physical health issues",
    )


def _severe_sleep_deprivation(stress, recoveries, sleeps, detected_at) -> Optional[RedFlag]:
    records = scored_sleeps(sleeps)
    if not records:
        return None
    recent = records[-RECENT_SLEEP_NIGHTS:]
    average = mean([s.sleep_hours for s in recent])
    if average >= SEVERE_SLEEP_HOURS:
        return None
    return RedFlag(
        type="severe_sleep_deprivation",
        description=f"Average sleep in recent {len(recent)} days is critically low ({average:.1f} hours)",
        severity="critical",
        detected_at=detected_at,
        recommendation="Immediate sleep assessment and intervention required",
    )


def _dramatic_recovery_decline(stress, recoveries, sleeps, detected_at) -> Optional[RedFlag]:
    records = scored_recoveries(recoveries)
    if len(records) < MIN_RECOVERIES_FOR_DECLINE:
        return None
    scores = [r.score.recovery_score for r in records]
    recent = scores[-RECENT_RECOVERY_DAYS:]
    baseline = scores[-(RECENT_RECOVERY_DAYS + BASELINE_RECOVERY_DAYS):-RECENT_RECOVERY_DAYS]
    recent_avg = mean(recent)
    baseline_avg = mean(baseline)
    if recent_avg >= baseline_avg - DRAMATIC_DECLINE_POINTS:
        return None
    return RedFlag(
        type="dramatic_recovery_decline",
        description=f"Recovery scores dropped dramatically from {baseline_avg:.1f} to {recent_avg:.1f}",
        severity="high",
        detected_at=detected_at,
        recommendation="Investigate sudden life changes, illness, or acute stressors",
    )


RED_FLAG_RULES = [
    _chronic_stress,
    _extended_poor_recovery,
    _severe_sleep_deprivation,
    _dramatic_recovery_decline,
]


def detect_red_flags(
    recoveries: Sequence[WhoopRecovery],
    sleeps: Sequence[WhoopSleep],
    stress: StressIndicators,
    detected_at: Optional[datetime] = None,
) -> List[RedFlag]:
    """
    检测需要立即关注的高危模式

    Args:
        recoveries: 恢复记录（任意顺序）
        sleeps: 睡眠记录（任意顺序）
        stress: 已计算的压力指标
        detected_at: 检测时间（默认当前UTC时间）

    Returns:
        按规则表顺序排列的红旗列表
    """
    detected_at = detected_at or datetime.now(timezone.utc)
    flags = []
    for rule in RED_FLAG_RULES:
        flag = rule(stress, recoveries, sleeps, detected_at)
        if flag is not None:
            flags.append(flag)

    if flags:
        logger.warning(f"检测到红旗: {[f.type for f in flags]}")
    return flags
