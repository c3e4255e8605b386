"""
Markdown报告渲染测试
"""
from datetime import datetime, timezone

from whoop_insight.schemas.analysis import (
    ActivityPatterns,
    DateRange,
    HealthSummary,
    RecoveryTrend,
    RedFlag,
    SleepAnalysis,
    StrainTrend,
    StressIndicators,
    TherapyInsight,
)
from whoop_insight.services import report_formatter


def make_summary(**overrides):
    fields = dict(
        user_id=1,
        date_range=DateRange(
            start=datetime(2024, 3, 1, tzinfo=timezone.utc),
            end=datetime(2024, 3, 14, tzinfo=timezone.utc),
        ),
        recovery_trend=RecoveryTrend(trend="no_data"),
        sleep_analysis=SleepAnalysis(sleep_quality_trend="no_data"),
        stress_indicators=StressIndicators(stress_level="unknown"),
        activity_patterns=ActivityPatterns(),
    )
    fields.update(overrides)
    return HealthSummary(**fields)


class TestHealthSummaryReport:
    def test_no_data_renders_placeholders(self):
        report = report_formatter.format_health_summary(make_summary())

        assert report.startswith("# Health Summary for Therapy Session\n")
        assert "**Analysis Period:** 2024-03-01 to 2024-03-14" in report
        assert "- **Average Score:** N/A% (no_data trend)" in report
        assert "- **Average Duration:** N/A hours" in report
        assert "- **Stress Level:** unknown" in report
        assert "Red Flags" not in report
        assert "Therapy Discussion Points" not in report

    def test_red_flags_and_insights(self):
        summary = make_summary(
            recovery_trend=RecoveryTrend(trend="declining", average_score=48.4, weekly_change=-9.5, consistency_score=0.71),
            red_flags=[
                RedFlag(
                    type="severe_sleep_deprivation",
                    description="Average sleep in recent 3 days is critically low (4.2 hours)",
                    severity="critical",
                    detected_at=datetime(2024, 3, 15, tzinfo=timezone.utc),
                    recommendation="Immediate sleep assessment and intervention required",
                )
            ],
            therapy_insights=[
                TherapyInsight(category="sleep", insight="Short sleep", severity="alert", suggestion="Go to bed earlier"),
                TherapyInsight(category="activity", insight="No workouts", severity="info"),
            ],
        )

        report = report_formatter.format_health_summary(summary)

        assert "- **Average Score:** 48.4% (declining trend)" in report
        assert "- **Consistency:** 71.0% (higher is better)" in report
        assert "- **Recent Change:** -9.5 points" in report
        assert "- **Severe Sleep Deprivation** (critical): Average sleep" in report
        assert "  *Recommendation:* Immediate sleep assessment and intervention required" in report
        assert "- ⚠️ **Sleep**: Short sleep" in report
        assert "  *Suggestion:* Go to bed earlier" in report
        assert "- ℹ️ **Activity**: No workouts" in report
        assert report.index("Red Flags") < report.index("Therapy Discussion Points")


class TestToolReports:
    def test_stress_report(self, window):
        stress = StressIndicators(
            stress_level="high",
            elevated_hrv_days=2,
            high_resting_hr_days=3,
            poor_recovery_streak=4,
            physiological_stress=55.0,
        )

        report = report_formatter.format_stress_report(stress, window)

        assert report.startswith("# Stress Analysis Report")
        assert "**Analysis Period:** 2024-03-01 to 2024-03-14" in report
        assert "- **Physiological Stress Score:** 55.0/100" in report
        assert "- **Poor Recovery Streak:** 4 days" in report
        assert report_formatter.stress_recommendations(stress) in report

    def test_stress_recommendations_by_level(self):
        texts = {
            level: report_formatter.stress_recommendations(StressIndicators(stress_level=level))
            for level in ["low", "moderate", "high", "critical", "unknown"]
        }

        assert texts["critical"].startswith("Immediate intervention recommended")
        assert texts["low"].startswith("Stress levels appear within normal range")
        assert len(set(texts.values())) == 5

    def test_sleep_report_for_healthy_sleep(self, window):
        analysis = SleepAnalysis(
            sleep_quality_trend="stable",
            average_hours=7.8,
            average_efficiency=0.92,
            average_debt=0.3,
            consistency_score=0.9,
            disturbance_frequency=1,
        )

        report = report_formatter.format_sleep_report(analysis, window, sessions=14)

        assert "**Total Sleep Sessions:** 14" in report
        assert "- **Sleep Efficiency:** 92.0%" in report
        assert "Sleep patterns appear supportive of mental health" in report
        assert "Continue current sleep practices" in report

    def test_activity_report_without_workouts(self, window):
        report = report_formatter.format_activity_report(ActivityPatterns(), window, total_workouts=0)

        assert "**Total Workouts:** 0" in report
        assert "- **Overtraining Risk:** unknown" in report
        assert "Lack of recorded physical activity" in report


class TestTrendReports:
    def test_recovery_trend(self):
        trend = RecoveryTrend(
            trend="declining",
            average_score=55.0,
            weekly_change=-12.0,
            consistency_score=0.5,
            last_seven_days=[70.0, 65.5],
        )

        report = report_formatter.format_recovery_trend(trend, 14)

        assert report.startswith("# Recovery Trend Analysis (14 days)")
        assert "Day 1: 70.0%, Day 2: 65.5%" in report
        assert "High variability in scores" in report

    def test_recovery_trend_without_scores(self):
        report = report_formatter.format_recovery_trend(RecoveryTrend(trend="no_data"), 7)

        assert "No recent scores available" in report
        assert "No scored recovery data" in report

    def test_empty_strain_trend(self):
        assert report_formatter.format_strain_trend(StrainTrend(), 30) == (
            "No strain data available for the requested period."
        )

    def test_strain_trend(self):
        trend = StrainTrend(sessions=3, average_strain=16.5, min_strain=12.0, max_strain=20.0, strains=[12.0, 17.5, 20.0])

        report = report_formatter.format_strain_trend(trend, 30)

        assert "- **Total Sessions:** 3" in report
        assert "- **Strain Range:** 12.0 - 20.0" in report
        assert "High average strain" in report


class TestAuthReports:
    def test_token_success_shows_expiry_in_hours(self):
        report = report_formatter.format_token_success(
            {"access_token": "abc", "refresh_token": "def", "expires_in": 3600, "scope": "offline"}
        )

        assert "WHOOP_ACCESS_TOKEN=abc" in report
        assert "3600 seconds (1.0 hours)" in report
        assert "**Expires at:** " in report

    def test_token_failure(self):
        report = report_formatter.format_token_failure(400, "invalid_grant")

        assert "**Error (status 400):**\ninvalid_grant" in report
