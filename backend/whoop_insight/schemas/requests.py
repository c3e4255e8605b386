"""
工具请求Schemas

每个工具对应一个请求变体，以 tool 字段区分，分发前统一校验。
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from whoop_insight.exceptions import InvalidRequestError
from whoop_insight.utils.datetime_helper import DateWindow

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

TrendMetric = Literal["recovery", "sleep", "strain"]


class ToolRequest(BaseModel):
    """工具请求基类"""

    model_config = ConfigDict(frozen=True, extra="forbid")


class DateRangeRequest(ToolRequest):
    """带日期区间的请求"""

    start_date: str = Field(..., pattern=ISO_DATE_PATTERN, description="Start date in YYYY-MM-DD format")
    end_date: str = Field(..., pattern=ISO_DATE_PATTERN, description="End date in YYYY-MM-DD format")
    user_id: Optional[int] = Field(None, description="Optional user ID (defaults to authenticated user)")

    @model_validator(mode="after")
    def _check_window(self):
        DateWindow.from_dates(self.start_date, self.end_date)
        return self

    @property
    def window(self) -> DateWindow:
        return DateWindow.from_dates(self.start_date, self.end_date)


class HealthSummaryRequest(DateRangeRequest):
    tool: Literal["get_health_summary"] = "get_health_summary"


class StressAnalysisRequest(DateRangeRequest):
    tool: Literal["analyze_stress_indicators"] = "analyze_stress_indicators"


class SleepAnalysisRequest(DateRangeRequest):
    tool: Literal["analyze_sleep_patterns"] = "analyze_sleep_patterns"


class ActivityAnalysisRequest(DateRangeRequest):
    tool: Literal["analyze_activity_patterns"] = "analyze_activity_patterns"


class TrendAnalysisRequest(ToolRequest):
    tool: Literal["analyze_health_trends"] = "analyze_health_trends"
    metric: TrendMetric = Field(..., description="Metric to analyze: recovery, sleep, or strain")
    days: int = Field(14, ge=7, le=90, description="Number of days to analyze")
    user_id: Optional[int] = None

    @property
    def window(self) -> DateWindow:
        return DateWindow.last_days(self.days)


class AuthSetupRequest(ToolRequest):
    tool: Literal["setup_whoop_auth"] = "setup_whoop_auth"
    client_id: Optional[str] = None
    authorization_code: Optional[str] = None
    client_secret: Optional[str] = None


AnyToolRequest = Annotated[
    Union[
        HealthSummaryRequest,
        StressAnalysisRequest,
        SleepAnalysisRequest,
        ActivityAnalysisRequest,
        TrendAnalysisRequest,
        AuthSetupRequest,
    ],
    Field(discriminator="tool"),
]

_request_adapter: TypeAdapter = TypeAdapter(AnyToolRequest)


def _describe(error: ValidationError, tool: str) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"] if part != tool)
        message = item["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_tool_request(tool: str, arguments: Optional[Dict[str, Any]] = None):
    """
    校验工具参数并构造对应的请求变体

    Args:
        tool: 工具名
        arguments: 原始参数（值为None的键视为未提供）

    Returns:
        请求变体实例

    Raises:
        InvalidRequestError: 未知工具或参数不合法
    """
    payload = {key: value for key, value in (arguments or {}).items() if value is not None}
    payload["tool"] = tool
    try:
        return _request_adapter.validate_python(payload)
    except ValidationError as e:
        raise InvalidRequestError(f"invalid arguments for {tool}: {_describe(e, tool)}") from e
