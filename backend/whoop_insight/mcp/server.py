"""
FastMCP Server Configuration

通过 stdio transport 向 Claude Desktop 等 MCP 客户端提供 Whoop 健康洞察
"""
import logging
from contextlib import asynccontextmanager
from fastmcp import FastMCP

from whoop_insight.config import settings
from whoop_insight.services.health_service import close_health_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP):
    """服务器生命周期：退出时关闭Whoop客户端"""
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} 启动中...")
    try:
        yield {}
    finally:
        logger.info(f"👋 {settings.APP_NAME} 关闭中...")
        await close_health_service()


# 创建 FastMCP 实例
mcp = FastMCP(
    name=settings.APP_NAME,
    lifespan=lifespan,
    instructions="""
    You are a health insight assistant with access to the user's WHOOP data
    (recovery, sleep, workouts and physiological cycles), aimed at supporting
    therapy sessions.

    Available tools:
    - get_health_summary: comprehensive summary with therapy discussion points and red flags
    - analyze_stress_indicators: physiological stress score from HRV, resting HR and recovery
    - analyze_sleep_patterns: sleep duration, efficiency, debt and mental health implications
    - analyze_activity_patterns: workout frequency, strain, overtraining risk
    - analyze_health_trends: recovery / sleep / strain trend over the last 7-90 days
    - setup_whoop_auth: OAuth setup (authorization URL, code exchange, instructions)

    Resources:
    - whoop://user/profile: basic profile of the authenticated user
    - whoop://health/recent: last 7 days of recovery, sleep and workout records

    Dates use the YYYY-MM-DD format.
    """
)


def get_mcp_server() -> FastMCP:
    """获取已注册全部工具和资源的 MCP 服务器"""
    # 导入 tools 以注册所有工具
    from . import tools  # noqa: F401

    logger.info(f"MCP Server initialized: {mcp.name}")
    return mcp
