"""
健康洞察服务与MCP工具入口测试
"""
import httpx
import pytest
from fastmcp.exceptions import ToolError

from whoop_insight.config import settings
from whoop_insight.exceptions import WhoopServerError
from whoop_insight.integrations.base import Credentials
from whoop_insight.integrations.whoop.client import WhoopClient
from whoop_insight.mcp import tools
from whoop_insight.models.whoop import RecordKind
from whoop_insight.schemas.requests import parse_tool_request
from whoop_insight.services.health_service import HealthInsightService
from tests.factories import USER_ID, StubClient, make_cycle, make_recoveries, make_sleep, make_workout


@pytest.fixture
def stub_client():
    return StubClient(
        {
            RecordKind.RECOVERY: make_recoveries([20] * 8),
            RecordKind.SLEEP: [make_sleep(4.5, offset=i) for i in range(3)],
            RecordKind.WORKOUT: [make_workout(12.0, offset=i) for i in (0, 2, 4)],
            RecordKind.CYCLE: [make_cycle(8.0), make_cycle(12.0, offset=1)],
        }
    )


@pytest.fixture
def service(stub_client):
    return HealthInsightService(client=stub_client)


def date_args(**extra):
    return {"start_date": "2024-03-01", "end_date": "2024-03-14", **extra}


class TestHealthInsightService:
    @pytest.mark.asyncio
    async def test_health_summary(self, service, stub_client):
        report = await service.handle(parse_tool_request("get_health_summary", date_args()))

        assert report.startswith("# Health Summary for Therapy Session")
        assert "**Extended Poor Recovery** (high)" in report
        assert "**Severe Sleep Deprivation** (critical)" in report
        assert sorted(stub_client.calls) == sorted(RecordKind)

    @pytest.mark.asyncio
    async def test_stress_fetches_recovery_only(self, service, stub_client):
        report = await service.handle(parse_tool_request("analyze_stress_indicators", date_args(user_id=USER_ID)))

        assert "- **Poor Recovery Streak:** 8 days" in report
        assert stub_client.calls == [RecordKind.RECOVERY]
        assert stub_client.user_calls == 0

    @pytest.mark.asyncio
    async def test_sleep_report_counts_sessions(self, service, stub_client):
        report = await service.handle(parse_tool_request("analyze_sleep_patterns", date_args()))

        assert "**Total Sleep Sessions:** 3" in report
        assert stub_client.calls == [RecordKind.SLEEP]

    @pytest.mark.asyncio
    async def test_activity_fetches_workouts_and_cycles(self, service, stub_client):
        report = await service.handle(parse_tool_request("analyze_activity_patterns", date_args()))

        assert "**Total Workouts:** 3" in report
        assert sorted(stub_client.calls) == sorted([RecordKind.WORKOUT, RecordKind.CYCLE])

    @pytest.mark.parametrize(
        "metric, kind, heading",
        [
            ("recovery", RecordKind.RECOVERY, "# Recovery Trend Analysis (30 days)"),
            ("sleep", RecordKind.SLEEP, "# Sleep Trend Analysis (30 days)"),
            ("strain", RecordKind.CYCLE, "# Strain Trend Analysis (30 days)"),
        ],
    )
    @pytest.mark.asyncio
    async def test_trends(self, service, stub_client, metric, kind, heading):
        report = await service.handle(parse_tool_request("analyze_health_trends", {"metric": metric, "days": 30}))

        assert report.startswith(heading)
        assert stub_client.calls == [kind]

    @pytest.mark.asyncio
    async def test_strain_trend_without_cycles(self):
        service = HealthInsightService(client=StubClient())

        report = await service.handle(parse_tool_request("analyze_health_trends", {"metric": "strain"}))

        assert report == "No strain data available for the requested period."

    @pytest.mark.asyncio
    async def test_resources(self, service):
        profile = await service.get_user_profile()
        recent = await service.get_recent_data()

        assert profile["user_id"] == USER_ID
        assert set(recent) == {"recovery", "sleep", "workouts"}
        assert len(recent["recovery"]) == 8
        assert len(recent["workouts"]) == 3

    @pytest.mark.asyncio
    async def test_close_releases_client(self, service, stub_client):
        await service.close()

        assert stub_client.closed


class TestSetupAuth:
    @pytest.mark.asyncio
    async def test_instructions_without_arguments(self, service):
        report = await service.handle(parse_tool_request("setup_whoop_auth"))

        assert report.startswith("# 🔐 Whoop OAuth Setup Guide")
        assert settings.WHOOP_REDIRECT_URI in report

    @pytest.mark.asyncio
    async def test_authorization_url_without_access_token(self):
        service = HealthInsightService()

        report = await service.handle(parse_tool_request("setup_whoop_auth", {"client_id": "my-client"}))

        assert "# Whoop OAuth Setup - Step 1" in report
        assert "client_id=my-client" in report
        assert "state=whoop-insight-auth" in report

    @pytest.mark.parametrize(
        "status, heading",
        [(200, "# ✅ Success! Whoop Tokens Obtained"), (400, "# ❌ Token Exchange Failed")],
    )
    @pytest.mark.asyncio
    async def test_code_exchange(self, status, heading):
        def handler(request):
            if status != 200:
                return httpx.Response(status, text="invalid_grant")
            return httpx.Response(200, json={"access_token": "fresh", "refresh_token": "r", "expires_in": 3600})

        client = WhoopClient(
            Credentials(access_token=""),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            token_url="https://api.test/oauth/oauth2/token",
        )
        service = HealthInsightService(client=client)

        report = await service.handle(
            parse_tool_request(
                "setup_whoop_auth",
                {"client_id": "my-client", "authorization_code": "code", "client_secret": "secret"},
            )
        )
        await service.close()

        assert report.startswith(heading)


class TestRunTool:
    @pytest.mark.asyncio
    async def test_dispatches_to_service(self, monkeypatch, service):
        monkeypatch.setattr(tools, "get_health_service", lambda: service)

        report = await tools.run_tool("analyze_sleep_patterns", date_args(user_id=None))

        assert report.startswith("# Sleep Pattern Analysis")

    @pytest.mark.asyncio
    async def test_invalid_arguments_raise_tool_error(self, monkeypatch, service):
        monkeypatch.setattr(tools, "get_health_service", lambda: service)

        with pytest.raises(ToolError) as exc_info:
            await tools.run_tool("analyze_health_trends", {"metric": "recovery", "days": 200})

        assert "invalid arguments for analyze_health_trends" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_api_failure_raises_tool_error(self, monkeypatch):
        failing = HealthInsightService(client=StubClient({RecordKind.SLEEP: WhoopServerError("boom", status_code=502)}))
        monkeypatch.setattr(tools, "get_health_service", lambda: failing)

        with pytest.raises(ToolError) as exc_info:
            await tools.run_tool("analyze_sleep_patterns", date_args())

        assert str(exc_info.value).startswith("analyze_sleep_patterns failed: ")
