"""
pytest 公共 fixtures
"""
import asyncio

import pytest

from whoop_insight.utils.datetime_helper import DateWindow


class FakeClock:
    """可手动推进的单调时钟，sleep 直接推进时间"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def window():
    return DateWindow.from_dates("2024-03-01", "2024-03-14")
