"""
日期时间辅助函数
"""
from datetime import datetime, date, time, timedelta, timezone
from typing import Union

import pytz
from pydantic import BaseModel, ConfigDict

from whoop_insight.config import settings
from whoop_insight.exceptions import InvalidRequestError

ISO_DATE_FORMAT = "%Y-%m-%d"


def local_tz():
    """配置的本地时区"""
    return pytz.timezone(settings.TZ)


def now_utc() -> datetime:
    """获取当前UTC时间"""
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    """获取当前本地时间"""
    return datetime.now(local_tz())


def to_rfc3339(dt: datetime) -> str:
    """格式化为RFC3339（UTC，Z结尾）"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_iso_date(value: Union[str, date], field: str = "date") -> date:
    """
    解析 YYYY-MM-DD 日期

    Raises:
        InvalidRequestError: 格式错误
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, ISO_DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise InvalidRequestError(f"invalid {field} format: expected YYYY-MM-DD, got {value!r}")


class DateWindow(BaseModel):
    """闭区间查询窗口"""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @classmethod
    def from_dates(cls, start_date: Union[str, date], end_date: Union[str, date]) -> "DateWindow":
        """
        由日历日期构造窗口（UTC零点）

        同一天的查询把结束时间扩展到当天23:59:59，避免窗口为空。

        Raises:
            InvalidRequestError: 日期格式错误或结束早于开始
        """
        start_day = parse_iso_date(start_date, "start_date")
        end_day = parse_iso_date(end_date, "end_date")

        start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
        end = datetime.combine(end_day, time.min, tzinfo=timezone.utc)

        if start_day == end_day:
            end = end + timedelta(days=1) - timedelta(seconds=1)

        if end < start:
            raise InvalidRequestError("end_date must be after start_date")

        return cls(start=start, end=end)

    @classmethod
    def last_days(cls, days: int, now: datetime = None) -> "DateWindow":
        """以当前时间为结束的最近N天窗口"""
        end = now or now_utc()
        return cls(start=end - timedelta(days=days), end=end)

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def as_params(self) -> dict:
        """转换为API查询参数"""
        return {"start": to_rfc3339(self.start), "end": to_rfc3339(self.end)}
