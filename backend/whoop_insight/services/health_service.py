"""
健康洞察服务

MCP工具与资源的统一入口：校验后的请求 → 拉取 → 分析 → 渲染报告。
"""
import logging
from typing import Any, Dict, Optional

from whoop_insight.config import settings
from whoop_insight.exceptions import InvalidRequestError, WhoopAuthenticationError
from whoop_insight.integrations.base import Credentials
from whoop_insight.integrations.whoop.client import WhoopClient
from whoop_insight.integrations.whoop.constants import DEFAULT_AUTH_STATE
from whoop_insight.models.whoop import RecordKind
from whoop_insight.schemas.requests import (
    ActivityAnalysisRequest,
    AuthSetupRequest,
    HealthSummaryRequest,
    SleepAnalysisRequest,
    StressAnalysisRequest,
    ToolRequest,
    TrendAnalysisRequest,
)
from whoop_insight.services import health_analysis, report_formatter
from whoop_insight.services.aggregation import HealthDataAggregator
from whoop_insight.utils.datetime_helper import DateWindow

logger = logging.getLogger(__name__)

RECENT_DATA_DAYS = 7


class HealthInsightService:
    """健康洞察服务"""

    def __init__(self, client: Optional[WhoopClient] = None):
        self._client = client

    @property
    def client(self) -> WhoopClient:
        """
        Whoop客户端（首次访问时按配置创建）

        Raises:
            WhoopAuthenticationError: 未配置访问令牌
        """
        if self._client is None:
            self._client = WhoopClient.from_settings()
            logger.info("Whoop客户端已创建")
        return self._client

    @property
    def aggregator(self) -> HealthDataAggregator:
        return HealthDataAggregator(self.client)

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def handle(self, request: ToolRequest) -> str:
        """按请求变体分发到对应的分析"""
        if isinstance(request, HealthSummaryRequest):
            return await self.get_health_summary(request)
        if isinstance(request, StressAnalysisRequest):
            return await self.analyze_stress(request)
        if isinstance(request, SleepAnalysisRequest):
            return await self.analyze_sleep(request)
        if isinstance(request, ActivityAnalysisRequest):
            return await self.analyze_activity(request)
        if isinstance(request, TrendAnalysisRequest):
            return await self.analyze_trends(request)
        if isinstance(request, AuthSetupRequest):
            return await self.setup_auth(request)
        raise InvalidRequestError(f"unsupported request: {type(request).__name__}")

    # ============ 分析工具 ============

    async def get_health_summary(self, request: HealthSummaryRequest) -> str:
        bundle = await self.aggregator.fetch_all(request.window, user_id=request.user_id)
        summary = health_analysis.analyze_health_summary(bundle)
        return report_formatter.format_health_summary(summary)

    async def analyze_stress(self, request: StressAnalysisRequest) -> str:
        window = request.window
        bundle = await self.aggregator.fetch_kinds(window, [RecordKind.RECOVERY], user_id=request.user_id)
        stress = health_analysis.analyze_stress_indicators(bundle.recoveries)
        return report_formatter.format_stress_report(stress, window)

    async def analyze_sleep(self, request: SleepAnalysisRequest) -> str:
        window = request.window
        bundle = await self.aggregator.fetch_kinds(window, [RecordKind.SLEEP], user_id=request.user_id)
        analysis = health_analysis.analyze_sleep_patterns(bundle.sleeps)
        return report_formatter.format_sleep_report(analysis, window, sessions=len(bundle.sleeps))

    async def analyze_activity(self, request: ActivityAnalysisRequest) -> str:
        window = request.window
        bundle = await self.aggregator.fetch_kinds(
            window, [RecordKind.WORKOUT, RecordKind.CYCLE], user_id=request.user_id
        )
        patterns = health_analysis.analyze_activity_patterns(bundle.workouts, bundle.cycles)
        return report_formatter.format_activity_report(patterns, window, total_workouts=len(bundle.workouts))

    async def analyze_trends(self, request: TrendAnalysisRequest) -> str:
        window = request.window
        if request.metric == "recovery":
            bundle = await self.aggregator.fetch_kinds(window, [RecordKind.RECOVERY], user_id=request.user_id)
            trend = health_analysis.analyze_recovery_trend(bundle.recoveries)
            return report_formatter.format_recovery_trend(trend, request.days)

        if request.metric == "sleep":
            bundle = await self.aggregator.fetch_kinds(window, [RecordKind.SLEEP], user_id=request.user_id)
            analysis = health_analysis.analyze_sleep_patterns(bundle.sleeps)
            return report_formatter.format_sleep_trend(analysis, request.days)

        bundle = await self.aggregator.fetch_kinds(window, [RecordKind.CYCLE], user_id=request.user_id)
        strain = health_analysis.analyze_strain_trend(bundle.cycles)
        return report_formatter.format_strain_trend(strain, request.days)

    # ============ OAuth ============

    def _oauth_client(self) -> WhoopClient:
        """授权流程使用的客户端（此时可能还没有访问令牌）"""
        if self._client is not None:
            return self._client
        return WhoopClient(
            Credentials(
                access_token=settings.access_token,
                client_id=settings.WHOOP_CLIENT_ID or None,
                client_secret=settings.WHOOP_CLIENT_SECRET or None,
            )
        )

    async def setup_auth(self, request: AuthSetupRequest) -> str:
        """
        OAuth设置向导

        只有client_id时生成授权URL；提供授权码和client_secret时换取令牌；
        其他情况返回设置说明。
        """
        redirect_uri = settings.WHOOP_REDIRECT_URI

        if request.client_id and not request.authorization_code:
            client = self._oauth_client()
            auth_url = client.get_authorization_url(state=DEFAULT_AUTH_STATE, client_id=request.client_id)
            if client is not self._client:
                await client.close()
            return report_formatter.format_auth_url(auth_url, redirect_uri, DEFAULT_AUTH_STATE)

        if request.authorization_code and request.client_secret:
            client = self._oauth_client()
            try:
                token_data = await client.exchange_code_for_token(
                    request.authorization_code,
                    client_id=request.client_id,
                    client_secret=request.client_secret,
                )
            except WhoopAuthenticationError as e:
                if e.status_code is None:
                    raise
                logger.warning(f"授权码换取令牌失败: status={e.status_code}")
                return report_formatter.format_token_failure(e.status_code, e.body)
            finally:
                if client is not self._client:
                    await client.close()
            return report_formatter.format_token_success(token_data)

        return report_formatter.format_auth_instructions(redirect_uri)

    # ============ 资源 ============

    async def get_user_profile(self) -> Dict[str, Any]:
        user = await self.client.get_user()
        return user.model_dump(mode="json")

    async def get_recent_data(self) -> Dict[str, Any]:
        """最近7天的恢复、睡眠、训练原始记录"""
        window = DateWindow.last_days(RECENT_DATA_DAYS)
        bundle = await self.aggregator.fetch_kinds(
            window, [RecordKind.RECOVERY, RecordKind.SLEEP, RecordKind.WORKOUT]
        )
        return {
            "recovery": [r.model_dump(mode="json") for r in bundle.recoveries],
            "sleep": [s.model_dump(mode="json") for s in bundle.sleeps],
            "workouts": [w.model_dump(mode="json") for w in bundle.workouts],
        }


_service: Optional[HealthInsightService] = None


def get_health_service() -> HealthInsightService:
    """获取服务单例"""
    global _service
    if _service is None:
        _service = HealthInsightService()
    return _service


async def close_health_service():
    """关闭服务单例"""
    global _service
    if _service is None:
        return
    try:
        await _service.close()
        logger.info("健康洞察服务已关闭")
    except Exception as e:
        logger.error(f"关闭健康洞察服务失败: {str(e)}")
    _service = None
