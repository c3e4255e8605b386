"""
Whoop数据集成模块
"""
from whoop_insight.integrations.whoop.client import WhoopClient
from whoop_insight.integrations.whoop.rate_limiter import RateLimiter

__all__ = ["WhoopClient", "RateLimiter"]
