"""
工具请求校验测试
"""
from datetime import datetime, timezone

import pytest

from whoop_insight.exceptions import InvalidRequestError
from whoop_insight.schemas.requests import (
    AuthSetupRequest,
    HealthSummaryRequest,
    StressAnalysisRequest,
    TrendAnalysisRequest,
    parse_tool_request,
)


class TestParseToolRequest:
    def test_date_range_request(self):
        request = parse_tool_request(
            "get_health_summary",
            {"start_date": "2024-03-01", "end_date": "2024-03-14", "user_id": 42},
        )

        assert isinstance(request, HealthSummaryRequest)
        assert request.user_id == 42
        assert request.window.start == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert request.window.end == datetime(2024, 3, 14, tzinfo=timezone.utc)

    def test_none_values_are_dropped(self):
        request = parse_tool_request(
            "analyze_stress_indicators",
            {"start_date": "2024-03-01", "end_date": "2024-03-01", "user_id": None},
        )

        assert isinstance(request, StressAnalysisRequest)
        assert request.user_id is None
        assert request.window.end == datetime(2024, 3, 1, 23, 59, 59, tzinfo=timezone.utc)

    def test_trend_defaults_to_fourteen_days(self):
        request = parse_tool_request("analyze_health_trends", {"metric": "sleep"})

        assert isinstance(request, TrendAnalysisRequest)
        assert request.days == 14
        assert (request.window.end - request.window.start).days == 14

    def test_auth_request_with_no_arguments(self):
        request = parse_tool_request("setup_whoop_auth")

        assert isinstance(request, AuthSetupRequest)
        assert request.client_id is None

    @pytest.mark.parametrize(
        "tool, arguments",
        [
            ("get_health_summary", {"start_date": "2024/03/01", "end_date": "2024-03-14"}),
            ("get_health_summary", {"start_date": "2024-02-30", "end_date": "2024-03-14"}),
            ("analyze_sleep_patterns", {"start_date": "2024-03-14", "end_date": "2024-03-01"}),
            ("analyze_activity_patterns", {"start_date": "2024-03-01"}),
            ("analyze_health_trends", {"metric": "recovery", "days": 6}),
            ("analyze_health_trends", {"metric": "recovery", "days": 91}),
            ("analyze_health_trends", {"metric": "mood"}),
            ("setup_whoop_auth", {"client_id": "abc", "scope": "everything"}),
            ("delete_all_data", {}),
        ],
    )
    def test_invalid_requests_are_rejected(self, tool, arguments):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_tool_request(tool, arguments)

        assert str(exc_info.value).startswith(f"invalid arguments for {tool}")

    def test_window_error_message(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_tool_request(
                "analyze_sleep_patterns",
                {"start_date": "2024-03-14", "end_date": "2024-03-01"},
            )

        assert "end_date must be after start_date" in str(exc_info.value)

    @pytest.mark.parametrize("days", [7, 90])
    def test_trend_day_bounds_are_inclusive(self, days):
        request = parse_tool_request("analyze_health_trends", {"metric": "strain", "days": days})

        assert request.days == days
