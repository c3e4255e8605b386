"""
咨询要点与红旗规则测试
"""
from datetime import datetime, timezone

import pytest

from whoop_insight.schemas.analysis import (
    ActivityPatterns,
    RecoveryTrend,
    SleepAnalysis,
    StressIndicators,
)
from whoop_insight.services.insights import detect_red_flags, generate_therapy_insights
from tests.factories import make_recoveries, make_sleep

DETECTED_AT = datetime(2024, 3, 15, tzinfo=timezone.utc)

LOW_STRESS = StressIndicators(
    stress_level="low",
    elevated_hrv_days=0,
    high_resting_hr_days=0,
    poor_recovery_streak=0,
    physiological_stress=5.0,
)


def healthy_inputs():
    return dict(
        recovery=RecoveryTrend(trend="stable", average_score=70, weekly_change=0, consistency_score=0.9),
        sleep=SleepAnalysis(
            sleep_quality_trend="stable",
            average_hours=7.8,
            average_efficiency=0.92,
            average_debt=0.2,
            consistency_score=0.9,
            disturbance_frequency=1,
            optimal_bedtime="22:00",
        ),
        stress=LOW_STRESS,
        activity=ActivityPatterns(
            weekly_workouts=3,
            average_strain=11.0,
            workout_consistency=0.8,
            overtraining_risk="low",
            active_recovery_days=1,
            intensity_balance="balanced",
        ),
    )


class TestTherapyInsights:
    def test_healthy_data_produces_no_insights(self):
        assert generate_therapy_insights(**healthy_inputs()) == []

    def test_rules_fire_in_table_order(self):
        inputs = healthy_inputs()
        inputs["recovery"] = RecoveryTrend(trend="declining", average_score=45, weekly_change=-12.5, consistency_score=0.5)
        inputs["sleep"] = inputs["sleep"].model_copy(update={"average_hours": 5.5, "average_efficiency": 0.8})
        inputs["stress"] = StressIndicators(stress_level="high", poor_recovery_streak=4, physiological_stress=55.0)
        inputs["activity"] = inputs["activity"].model_copy(update={"weekly_workouts": 0})

        insights = generate_therapy_insights(**inputs)

        assert [(i.category, i.severity) for i in insights] == [
            ("recovery", "concern"),
            ("recovery", "info"),
            ("sleep", "alert"),
            ("sleep", "concern"),
            ("stress", "alert"),
            ("stress", "alert"),
            ("activity", "info"),
        ]
        assert "12.5%" in insights[0].insight
        assert "5.5 hours" in insights[2].insight
        assert "(4 days)" in insights[5].insight

    def test_short_sleep_severity(self):
        inputs = healthy_inputs()
        inputs["sleep"] = inputs["sleep"].model_copy(update={"average_hours": 6.5})

        insights = generate_therapy_insights(**inputs)

        assert [(i.category, i.severity) for i in insights] == [("sleep", "concern")]

    def test_overtraining_and_declining_sleep(self):
        inputs = healthy_inputs()
        inputs["sleep"] = inputs["sleep"].model_copy(update={"sleep_quality_trend": "declining"})
        inputs["activity"] = inputs["activity"].model_copy(update={"overtraining_risk": "high"})

        insights = generate_therapy_insights(**inputs)

        assert [i.category for i in insights] == ["sleep", "activity"]
        assert insights[1].insight.startswith("High training load")

    def test_no_data_rules_do_not_fire(self):
        insights = generate_therapy_insights(
            RecoveryTrend(trend="no_data"),
            SleepAnalysis(sleep_quality_trend="no_data"),
            StressIndicators(stress_level="unknown"),
            ActivityPatterns(),
        )

        assert [i.category for i in insights] == ["activity"]


class TestRedFlags:
    @pytest.mark.parametrize("hours, fires", [(5.0, False), (4.9, True)])
    def test_severe_sleep_deprivation_threshold(self, hours, fires):
        sleeps = [make_sleep(hours, offset=i) for i in range(3)]

        flags = detect_red_flags([], sleeps, LOW_STRESS, detected_at=DETECTED_AT)

        assert [f.type == "severe_sleep_deprivation" for f in flags] == ([True] if fires else [])

    def test_sleep_flag_uses_most_recent_three_nights(self):
        sleeps = [make_sleep(3.0, offset=0), make_sleep(3.0, offset=1)] + [
            make_sleep(8.0, offset=i) for i in range(2, 5)
        ]

        assert detect_red_flags([], list(reversed(sleeps)), LOW_STRESS, detected_at=DETECTED_AT) == []

    def test_naps_do_not_count_as_nights(self):
        sleeps = [make_sleep(7.0, offset=i) for i in range(3)] + [make_sleep(0.5, offset=2.5, nap=True)]

        assert detect_red_flags([], sleeps, LOW_STRESS, detected_at=DETECTED_AT) == []

    def test_sleep_flag_with_fewer_nights(self):
        flags = detect_red_flags([], [make_sleep(4.0)], LOW_STRESS, detected_at=DETECTED_AT)

        assert flags[0].severity == "critical"
        assert flags[0].description == "Average sleep in recent 1 days is critically low (4.0 hours)"
        assert flags[0].recommendation == "Immediate sleep assessment and intervention required"

    def test_chronic_stress(self):
        stress = StressIndicators(stress_level="critical", poor_recovery_streak=2, physiological_stress=75.0)

        flags = detect_red_flags([], [], stress, detected_at=DETECTED_AT)

        assert [(f.type, f.severity) for f in flags] == [("chronic_stress", "critical")]
        assert flags[0].recommendation == "Consider immediate stress intervention and possible medical evaluation"
        assert flags[0].detected_at == DETECTED_AT

    def test_extended_poor_recovery(self):
        stress = StressIndicators(stress_level="high", poor_recovery_streak=7, physiological_stress=60.0)

        flags = detect_red_flags([], [], stress, detected_at=DETECTED_AT)

        assert [(f.type, f.severity) for f in flags] == [("extended_poor_recovery", "high")]
        assert "7 consecutive days" in flags[0].description

    def test_dramatic_recovery_decline(self):
        recoveries = make_recoveries([80, 80, 80, 80, 40, 40, 40])

        flags = detect_red_flags(recoveries, [], LOW_STRESS, detected_at=DETECTED_AT)

        assert [(f.type, f.severity) for f in flags] == [("dramatic_recovery_decline", "high")]
        assert flags[0].description == "Recovery scores dropped dramatically from 80.0 to 40.0"
        assert flags[0].recommendation == "Investigate sudden life changes, illness, or acute stressors"

    def test_decline_needs_seven_recoveries(self):
        recoveries = make_recoveries([90, 90, 90, 20, 20, 20])

        assert detect_red_flags(recoveries, [], LOW_STRESS, detected_at=DETECTED_AT) == []

    def test_decline_must_exceed_thirty_points(self):
        recoveries = make_recoveries([80, 80, 80, 80, 50, 50, 50])

        assert detect_red_flags(recoveries, [], LOW_STRESS, detected_at=DETECTED_AT) == []

    def test_order_is_stable(self):
        stress = StressIndicators(stress_level="critical", poor_recovery_streak=9, physiological_stress=90.0)
        recoveries = make_recoveries([90] * 7 + [10] * 3)
        sleeps = [make_sleep(3.5, offset=i) for i in range(3)]

        flags = detect_red_flags(recoveries, sleeps, stress, detected_at=DETECTED_AT)

        assert [f.type for f in flags] == [
            "chronic_stress",
            "extended_poor_recovery",
            "severe_sleep_deprivation",
            "dramatic_recovery_decline",
        ]

    def test_defaults_detected_at_to_now(self):
        stress = StressIndicators(stress_level="critical", poor_recovery_streak=0, physiological_stress=80.0)

        flags = detect_red_flags([], [], stress)

        assert flags[0].detected_at.tzinfo is not None
