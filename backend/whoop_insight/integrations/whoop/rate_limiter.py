"""
令牌桶限流器

所有出站请求共享同一个限流器：稳态速率 + 少量突发容量。
请求只会被延迟，不会被丢弃。
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from whoop_insight.exceptions import RateLimitTimeoutError

logger = logging.getLogger(__name__)

# 浮点误差容忍度
TOKEN_EPSILON = 1e-9


class RateLimiter:
    """令牌桶限流器（并发安全）"""

    def __init__(
        self,
        requests_per_minute: int = 100,
        burst: int = 10,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            requests_per_minute: 稳态速率
            burst: 桶容量（允许的突发请求数）
            timeout: 默认等待超时（秒），None表示无限等待
            clock: 单调时钟
            sleep: 异步等待函数
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.rate = requests_per_minute / 60.0  # 每秒补充的令牌数
        self.capacity = float(burst)
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    @property
    def available_tokens(self) -> float:
        """当前可用令牌数（含尚未结算的补充）"""
        elapsed = self._clock() - self._updated_at
        return min(self.capacity, self._tokens + elapsed * self.rate)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated_at
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated_at = now

    async def _take(self) -> None:
        # 持锁等待，等待者按FIFO顺序获得令牌
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1 - TOKEN_EPSILON:
                    self._tokens -= 1
                    return
                delay = (1 - self._tokens) / self.rate
                logger.debug(f"限流等待 {delay:.3f}s")
                await self._sleep(delay)

    async def acquire(self, timeout: Optional[float] = None) -> None:
        """
        获取一个请求配额

        Args:
            timeout: 本次等待超时（秒），默认使用构造时的timeout

        Raises:
            RateLimitTimeoutError: 等待超时
        """
        if timeout is None:
            timeout = self.timeout

        if timeout is None:
            await self._take()
            return

        try:
            await asyncio.wait_for(self._take(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"限流等待超时: {timeout}s")
            raise RateLimitTimeoutError(f"timed out after {timeout}s waiting for a request slot")
