"""
Markdown报告格式化

把分析结果渲染成面向心理咨询场景的文本报告（MCP工具的返回内容）。
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional

from whoop_insight.schemas.analysis import (
    ActivityPatterns,
    HealthSummary,
    RecoveryTrend,
    SleepAnalysis,
    StrainTrend,
    StressIndicators,
)
from whoop_insight.utils.datetime_helper import DateWindow, now_local

NOT_AVAILABLE = "N/A"

SEVERITY_MARKERS = {
    "alert": "⚠️ ",
    "concern": "⚡ ",
    "info": "ℹ️ ",
}


def _num(value: Optional[float], scale: float = 1.0, digits: int = 1) -> str:
    """数值格式化，None 显示为 N/A"""
    if value is None:
        return NOT_AVAILABLE
    return f"{value * scale:.{digits}f}"


def _int(value: Optional[int]) -> str:
    return NOT_AVAILABLE if value is None else str(value)


def _period(window: DateWindow) -> str:
    return f"{window.start_date.isoformat()} to {window.end_date.isoformat()}"


# ============ 综合摘要 ============

def format_health_summary(summary: HealthSummary) -> str:
    """综合健康摘要"""
    recovery = summary.recovery_trend
    sleep = summary.sleep_analysis
    stress = summary.stress_indicators
    activity = summary.activity_patterns

    lines = [
        "# Health Summary for Therapy Session",
        "",
        f"**Analysis Period:** {summary.date_range.start.date().isoformat()} "
        f"to {summary.date_range.end.date().isoformat()}",
        "",
        "## Recovery Trends",
        f"- **Average Score:** {_num(recovery.average_score)}% ({recovery.trend} trend)",
        f"- **Consistency:** {_num(recovery.consistency_score, 100)}% (higher is better)",
    ]
    if recovery.weekly_change:
        lines.append(f"- **Recent Change:** {_num(recovery.weekly_change)} points")
    lines.append("")

    lines += [
        "## Sleep Analysis",
        f"- **Average Duration:** {_num(sleep.average_hours)} hours",
        f"- **Sleep Efficiency:** {_num(sleep.average_efficiency, 100)}%",
        f"- **Sleep Debt:** {_num(sleep.average_debt)} hours",
        f"- **Quality Trend:** {sleep.sleep_quality_trend}",
        "",
        "## Stress Indicators",
        f"- **Stress Level:** {stress.stress_level}",
    ]
    if stress.poor_recovery_streak:
        lines.append(f"- **Poor Recovery Streak:** {stress.poor_recovery_streak} days")
    lines.append("")

    lines += [
        "## Activity Patterns",
        f"- **Weekly Workouts:** {activity.weekly_workouts}",
        f"- **Average Strain:** {_num(activity.average_strain)}",
        f"- **Overtraining Risk:** {activity.overtraining_risk}",
        "",
    ]

    if summary.red_flags:
        lines.append("## ⚠️ Red Flags Requiring Attention")
        for flag in summary.red_flags:
            title = flag.type.replace("_", " ").title()
            lines.append(f"- **{title}** ({flag.severity}): {flag.description}")
            lines.append(f"  *Recommendation:* {flag.recommendation}")
        lines.append("")

    if summary.therapy_insights:
        lines.append("## 💡 Therapy Discussion Points")
        for insight in summary.therapy_insights:
            marker = SEVERITY_MARKERS.get(insight.severity, "")
            lines.append(f"- {marker}**{insight.category.title()}**: {insight.insight}")
            if insight.suggestion:
                lines.append(f"  *Suggestion:* {insight.suggestion}")

    return "\n".join(lines) + "\n"


# ============ 压力 ============

def stress_recommendations(stress: StressIndicators) -> str:
    if stress.stress_level == "critical":
        return (
            "Immediate intervention recommended. Consider reducing stressors, improving sleep hygiene, "
            "and potentially seeking medical evaluation for chronic stress impacts."
        )
    if stress.stress_level == "high":
        return (
            "Elevated stress levels detected. Focus on stress management techniques, relaxation practices, "
            "and identifying primary stressors in therapy."
        )
    if stress.stress_level == "moderate":
        return "Moderate stress indicators present. Discuss stress management strategies and monitor for progression."
    if stress.stress_level == "low":
        return "Stress levels appear within normal range. Continue current coping strategies."
    return "No recovery data available for the requested period, so stress could not be assessed."


def format_stress_report(stress: StressIndicators, window: DateWindow) -> str:
    return f"""# Stress Analysis Report

**Analysis Period:** {_period(window)}

## Physiological Stress Indicators

- **Overall Stress Level:** {stress.stress_level}
- **Physiological Stress Score:** {_num(stress.physiological_stress)}/100
- **Days with Elevated HRV:** {_int(stress.elevated_hrv_days)}
- **Days with High Resting HR:** {_int(stress.high_resting_hr_days)}
- **Poor Recovery Streak:** {_int(stress.poor_recovery_streak)} days

## Interpretation

The physiological stress score combines multiple biomarkers including heart rate variability patterns, resting heart rate elevations, and recovery consistency.

**Stress Level Definitions:**
- **Low (0-30):** Normal physiological stress response
- **Moderate (30-50):** Elevated stress requiring attention
- **High (50-70):** Significant stress impacting recovery
- **Critical (70+):** Severe stress requiring immediate intervention

## Therapeutic Considerations

{stress_recommendations(stress)}

*Note: This analysis is based on physiological markers and should be combined with psychological assessment for comprehensive evaluation.*"""


# ============ 睡眠 ============

def sleep_mental_health_implications(analysis: SleepAnalysis) -> str:
    if not analysis.has_data:
        return "No scored sleep sessions are available for the requested period."

    implications = []
    if analysis.average_hours < 7:
        implications.append(
            "Insufficient sleep duration may contribute to mood instability, increased anxiety, "
            "and difficulty with emotional regulation"
        )
    if analysis.average_efficiency < 0.8:
        implications.append(
            "Poor sleep efficiency suggests difficulty maintaining sleep, which can indicate anxiety, "
            "stress, or sleep disorders"
        )
    if analysis.sleep_quality_trend == "declining":
        implications.append(
            "Declining sleep quality trend may reflect increasing stress, life changes, "
            "or developing mental health concerns"
        )

    if not implications:
        return "Sleep patterns appear supportive of mental health and emotional regulation."
    return ". ".join(implications)


def sleep_recommendations(analysis: SleepAnalysis) -> str:
    if not analysis.has_data:
        return "Make sure the WHOOP strap is worn overnight so sleep can be scored."

    recommendations = []
    if analysis.average_hours < 7:
        recommendations.append(
            "Focus on extending sleep duration through earlier bedtime and consistent sleep schedule"
        )
    if analysis.average_efficiency < 0.85:
        recommendations.append("Explore sleep hygiene practices and factors affecting sleep maintenance")
    if analysis.consistency_score < 0.7:
        recommendations.append("Work on sleep schedule consistency to improve circadian rhythm regulation")

    if not recommendations:
        return "Continue current sleep practices as they appear to be supporting good sleep quality."
    return "; ".join(recommendations)


def format_sleep_report(analysis: SleepAnalysis, window: DateWindow, sessions: int) -> str:
    return f"""# Sleep Pattern Analysis

**Analysis Period:** {_period(window)}
**Total Sleep Sessions:** {sessions}

## Sleep Metrics

- **Average Duration:** {_num(analysis.average_hours)} hours
- **Sleep Efficiency:** {_num(analysis.average_efficiency, 100)}%
- **Average Sleep Debt:** {_num(analysis.average_debt)} hours
- **Sleep Consistency Score:** {_num(analysis.consistency_score, 100)}%
- **Average Disturbances:** {_num(analysis.disturbance_frequency)} per night
- **Quality Trend:** {analysis.sleep_quality_trend}

## Mental Health Implications

{sleep_mental_health_implications(analysis)}

## Recommendations

{sleep_recommendations(analysis)}"""


# ============ 活动 ============

def activity_behavioral_insights(patterns: ActivityPatterns) -> str:
    insights = []
    if patterns.weekly_workouts == 0:
        insights.append(
            "Lack of recorded physical activity may indicate low motivation, energy, "
            "or potential depression symptoms"
        )
    elif patterns.weekly_workouts > 7:
        insights.append(
            "High exercise frequency might indicate compulsive exercise behaviors "
            "or use of exercise as primary coping mechanism"
        )
    if patterns.overtraining_risk == "high":
        insights.append(
            "High training load may contribute to physical and mental fatigue, "
            "potentially exacerbating stress and mood issues"
        )
    if patterns.intensity_balance == "high_intensity_focused":
        insights.append(
            "Preference for high-intensity exercise may reflect need for intense stimulation "
            "or avoidance behaviors"
        )

    if not insights:
        return "Activity patterns suggest a balanced approach to exercise that likely supports mental health."
    return ". ".join(insights)


def format_activity_report(patterns: ActivityPatterns, window: DateWindow, total_workouts: int) -> str:
    return f"""# Activity Pattern Analysis

**Analysis Period:** {_period(window)}
**Total Workouts:** {total_workouts}

## Activity Metrics

- **Weekly Workout Frequency:** {patterns.weekly_workouts} sessions
- **Average Strain:** {_num(patterns.average_strain)}
- **Workout Consistency:** {_num(patterns.workout_consistency, 100)}%
- **Overtraining Risk:** {patterns.overtraining_risk}
- **Active Recovery Days:** {patterns.active_recovery_days}
- **Intensity Balance:** {patterns.intensity_balance}

## Behavioral Health Insights

{activity_behavioral_insights(patterns)}"""


# ============ 趋势 ============

def format_score_list(scores: Optional[List[float]]) -> str:
    if not scores:
        return "No recent scores available"
    return ", ".join(f"Day {i}: {score:.1f}%" for i, score in enumerate(scores, start=1))


def interpret_recovery_trend(trend: RecoveryTrend) -> str:
    if not trend.has_data:
        return "No scored recovery data is available for the requested period."

    interpretation = f"Recovery is showing a {trend.trend} trend"
    if trend.trend == "declining":
        interpretation += " which may indicate increasing stress, inadequate recovery, or developing health concerns"
    elif trend.trend == "improving":
        interpretation += " suggesting effective stress management and recovery strategies"
    if trend.consistency_score < 0.6:
        interpretation += ". High variability in scores suggests inconsistent stressors or recovery practices"
    return interpretation + "."


def interpret_sleep_trend(analysis: SleepAnalysis) -> str:
    if not analysis.has_data:
        return "No scored sleep data is available for the requested period."

    parts = []
    if analysis.average_hours < 7:
        parts.append("Sleep duration is below optimal range for most adults.")
    if analysis.average_efficiency < 0.85:
        parts.append("Sleep efficiency suggests difficulty maintaining sleep.")
    if analysis.sleep_quality_trend == "declining":
        parts.append("Declining quality trend requires attention to identify contributing factors.")
    elif analysis.sleep_quality_trend == "improving":
        parts.append("Improving quality trend suggests positive changes in sleep habits or stress management.")

    if not parts:
        return "Sleep patterns appear to be within healthy ranges."
    return " ".join(parts)


def interpret_strain_pattern(trend: StrainTrend) -> str:
    if trend.average_strain is None:
        return "No strain data to analyze"
    if trend.average_strain > 15:
        return "High average strain may indicate intense training that could impact recovery"
    if trend.average_strain < 8:
        return "Low average strain suggests minimal physical stress, which may be appropriate for recovery phases"
    return "Strain levels appear balanced for maintaining fitness while allowing recovery"


def format_recovery_trend(trend: RecoveryTrend, days: int) -> str:
    return f"""# Recovery Trend Analysis ({days} days)

## Trend Summary
- **Overall Trend:** {trend.trend}
- **Average Score:** {_num(trend.average_score)}%
- **Weekly Change:** {_num(trend.weekly_change)} points
- **Consistency:** {_num(trend.consistency_score, 100)}%

## Recent Scores
{format_score_list(trend.last_seven_days)}

## Interpretation
{interpret_recovery_trend(trend)}"""


def format_sleep_trend(analysis: SleepAnalysis, days: int) -> str:
    return f"""# Sleep Trend Analysis ({days} days)

## Sleep Summary
- **Average Duration:** {_num(analysis.average_hours)} hours
- **Sleep Efficiency:** {_num(analysis.average_efficiency, 100)}%
- **Quality Trend:** {analysis.sleep_quality_trend}
- **Consistency:** {_num(analysis.consistency_score, 100)}%

## Analysis
{interpret_sleep_trend(analysis)}"""


def format_strain_trend(trend: StrainTrend, days: int) -> str:
    if trend.sessions == 0:
        return "No strain data available for the requested period."

    return f"""# Strain Trend Analysis ({days} days)

## Strain Summary
- **Average Strain:** {_num(trend.average_strain)}
- **Total Sessions:** {trend.sessions}
- **Strain Range:** {_num(trend.min_strain)} - {_num(trend.max_strain)}

## Recent Pattern
{interpret_strain_pattern(trend)}"""


# ============ OAuth ============

def format_auth_url(auth_url: str, redirect_uri: str, state: str) -> str:
    return f"""# Whoop OAuth Setup - Step 1

## 🔗 Authorization URL Generated

**Click this URL to authorize your Whoop app:**

{auth_url}

## 📋 Next Steps:

1. **Open the URL above** in your browser
2. **Log in to Whoop** and authorize the app
3. **Copy the authorization code** from the callback URL
4. **Ask me to exchange the code for tokens** by saying:
   "Exchange my Whoop authorization code: [YOUR_CODE_HERE]"

## ⚠️ Note:
The redirect URL may show an error page - that's normal! Just copy the 'code' parameter from the URL bar.

Example callback URL:
{redirect_uri}?code=ABC123...&state={state}

Copy everything after "code=" and before "&state"."""


def format_token_success(token_data: Dict[str, Any]) -> str:
    expires_in = int(token_data.get("expires_in") or 0)
    access_token = token_data.get("access_token", "")
    expires_at = now_local() + timedelta(seconds=expires_in)
    return f"""# ✅ Success! Whoop Tokens Obtained

## 🎉 Your Authentication is Complete!

**Access Token:** {access_token}
**Refresh Token:** {token_data.get("refresh_token", "")}
**Expires in:** {expires_in} seconds ({expires_in / 3600:.1f} hours)
**Expires at:** {expires_at.strftime("%Y-%m-%d %H:%M %Z")}
**Scopes:** {token_data.get("scope", "")}

## 🚀 Next Steps:

1. **Update your .env file** with the access token:
   WHOOP_ACCESS_TOKEN={access_token}

2. **Restart your MCP client** to load the new token

3. **Test your connection** by asking me:
   "Analyze my Whoop data from yesterday"

## 💡 Pro Tip:
Save the refresh token together with WHOOP_CLIENT_ID and WHOOP_CLIENT_SECRET! Expired access tokens are then refreshed automatically."""


def format_token_failure(status_code: Optional[int], body: str) -> str:
    return f"""# ❌ Token Exchange Failed

**Error (status {_int(status_code)}):**
{body}

## Common Issues:
- Authorization code already used (codes are single-use)
- Authorization code expired (they expire quickly)
- Wrong redirect URI (must match exactly)
- Invalid client credentials

## 🔄 Try Again:
Ask me to generate a new authorization URL with your client_id."""


def format_auth_instructions(redirect_uri: str) -> str:
    return f"""# 🔐 Whoop OAuth Setup Guide

## Prerequisites:
1. **Whoop Developer Account** - Sign up at https://developer.whoop.com
2. **Create an App** in the Whoop Developer Portal
3. **Set Redirect URI** to: {redirect_uri}

## Setup Process:

### Step 1: Get Authorization URL
Ask me: "Generate Whoop auth URL for client_id: YOUR_CLIENT_ID"

### Step 2: Authorize App
I'll provide a URL to authorize your app with Whoop

### Step 3: Exchange Code
After authorization, ask me: "Exchange Whoop code: YOUR_CODE with secret: YOUR_SECRET"

### Step 4: Update Configuration
I'll provide the access token to add to your .env file

## 💡 Need Help?
- Ask me to "Generate Whoop auth URL" if you have a client_id
- Visit https://developer.whoop.com for app setup instructions
- The process takes just a few minutes!"""
