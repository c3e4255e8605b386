"""
MCP Tools Implementation

6 个健康分析工具 + 2 个数据资源
"""
import json
import logging
from typing import Any, Dict, Optional

from fastmcp.exceptions import ResourceError, ToolError

from whoop_insight.exceptions import InvalidRequestError, WhoopAPIError
from whoop_insight.schemas.requests import parse_tool_request
from whoop_insight.services.health_service import get_health_service

from .server import mcp

logger = logging.getLogger(__name__)


# ============ 辅助函数 ============

async def run_tool(tool: str, arguments: Dict[str, Any]) -> str:
    """
    校验参数并执行工具

    Raises:
        ToolError: 参数不合法或Whoop API调用失败
    """
    try:
        request = parse_tool_request(tool, arguments)
        return await get_health_service().handle(request)
    except InvalidRequestError as e:
        logger.warning(f"工具参数不合法: tool={tool}, error={str(e)}")
        raise ToolError(str(e))
    except WhoopAPIError as e:
        logger.error(f"工具执行失败: tool={tool}, error={str(e)}")
        raise ToolError(f"{tool} failed: {str(e)}")


# ============ MCP Tools ============

@mcp.tool
async def get_health_summary(start_date: str, end_date: str, user_id: Optional[int] = None) -> str:
    """
    Get a comprehensive health summary for therapy sessions.

    Includes recovery trends, sleep analysis, stress indicators, activity
    patterns, therapy discussion points and red flags.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format
        user_id: Optional user ID (defaults to authenticated user)
    """
    return await run_tool(
        "get_health_summary",
        {"start_date": start_date, "end_date": end_date, "user_id": user_id},
    )


@mcp.tool
async def analyze_stress_indicators(start_date: str, end_date: str, user_id: Optional[int] = None) -> str:
    """
    Analyze physiological stress markers (HRV, resting heart rate, recovery streaks).

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format
        user_id: Optional user ID (defaults to authenticated user)
    """
    return await run_tool(
        "analyze_stress_indicators",
        {"start_date": start_date, "end_date": end_date, "user_id": user_id},
    )


@mcp.tool
async def analyze_sleep_patterns(start_date: str, end_date: str, user_id: Optional[int] = None) -> str:
    """
    Analyze sleep quality and patterns and their mental health implications.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format
        user_id: Optional user ID (defaults to authenticated user)
    """
    return await run_tool(
        "analyze_sleep_patterns",
        {"start_date": start_date, "end_date": end_date, "user_id": user_id},
    )


@mcp.tool
async def analyze_activity_patterns(start_date: str, end_date: str, user_id: Optional[int] = None) -> str:
    """
    Analyze workout frequency, training load and intensity balance.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format
        user_id: Optional user ID (defaults to authenticated user)
    """
    return await run_tool(
        "analyze_activity_patterns",
        {"start_date": start_date, "end_date": end_date, "user_id": user_id},
    )


@mcp.tool
async def analyze_health_trends(metric: str, days: int = 14, user_id: Optional[int] = None) -> str:
    """
    Analyze a health metric trend over the most recent days.

    Args:
        metric: Metric to analyze: recovery, sleep, or strain
        days: Number of days to analyze (7-90, default 14)
        user_id: Optional user ID (defaults to authenticated user)
    """
    return await run_tool(
        "analyze_health_trends",
        {"metric": metric, "days": days, "user_id": user_id},
    )


@mcp.tool
async def setup_whoop_auth(
    client_id: Optional[str] = None,
    authorization_code: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> str:
    """
    Set up WHOOP OAuth authentication.

    With only client_id, returns the authorization URL. With
    authorization_code and client_secret, exchanges the code for tokens.
    Otherwise returns setup instructions.

    Args:
        client_id: WHOOP app client ID
        authorization_code: Authorization code from the OAuth callback
        client_secret: WHOOP app client secret
    """
    return await run_tool(
        "setup_whoop_auth",
        {"client_id": client_id, "authorization_code": authorization_code, "client_secret": client_secret},
    )


# ============ MCP Resources ============

@mcp.resource(
    "whoop://user/profile",
    name="User Profile",
    description="Basic profile of the authenticated WHOOP user",
    mime_type="application/json",
)
async def user_profile() -> str:
    try:
        profile = await get_health_service().get_user_profile()
    except WhoopAPIError as e:
        logger.error(f"读取用户资料失败: {str(e)}")
        raise ResourceError(f"failed to get user profile: {str(e)}")
    return json.dumps(profile, indent=2)


@mcp.resource(
    "whoop://health/recent",
    name="Recent Health Data",
    description="Recovery, sleep and workout records from the last 7 days",
    mime_type="application/json",
)
async def recent_health_data() -> str:
    try:
        data = await get_health_service().get_recent_data()
    except WhoopAPIError as e:
        logger.error(f"读取最近健康数据失败: {str(e)}")
        raise ResourceError(f"failed to get recent data: {str(e)}")
    return json.dumps(data, indent=2)
