"""
Whoop API v2 客户端
"""
import asyncio
import logging
from typing import Optional, List, Dict, Any
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from whoop_insight.config import settings
from whoop_insight.exceptions import (
    WhoopAPIError,
    WhoopAuthenticationError,
    WhoopParseError,
    WhoopTokenRefreshError,
    WhoopTransportError,
    error_for_status,
)
from whoop_insight.integrations.base import Credentials, CredentialStore, EnvFileCredentialStore, NullCredentialStore
from whoop_insight.integrations.whoop.constants import (
    DEFAULT_AUTH_STATE,
    NEXT_TOKEN_FIELD,
    NEXT_TOKEN_PARAM,
    RECORD_ENDPOINTS,
    USER_PROFILE_ENDPOINT,
    WHOOP_SCOPES,
)
from whoop_insight.integrations.whoop.rate_limiter import RateLimiter
from whoop_insight.models.whoop import (
    RECORD_MODELS,
    RecordKind,
    WhoopUser,
)
from whoop_insight.utils.datetime_helper import DateWindow

logger = logging.getLogger(__name__)


class WhoopClient:
    """Whoop API客户端（限流、分页、401自动刷新令牌）"""

    def __init__(
        self,
        credentials: Credentials,
        rate_limiter: Optional[RateLimiter] = None,
        credential_store: Optional[CredentialStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        token_url: Optional[str] = None,
        page_size: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.WHOOP_API_BASE_URL).rstrip("/")
        self.token_url = token_url or settings.token_url
        self.page_size = page_size or settings.WHOOP_PAGE_SIZE
        self.rate_limiter = rate_limiter or RateLimiter(
            requests_per_minute=settings.WHOOP_RATE_LIMIT,
            burst=settings.WHOOP_RATE_BURST,
            timeout=settings.WHOOP_RATE_LIMIT_TIMEOUT,
        )
        self.credential_store = credential_store or NullCredentialStore()
        # trust_env=False: 忽略代理环境变量，直连Whoop API
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.WHOOP_REQUEST_TIMEOUT, trust_env=False
        )
        self._credentials = credentials
        # 同一时刻只允许一个刷新在进行
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, **kwargs) -> "WhoopClient":
        """
        从配置创建客户端，刷新后的令牌写回.env

        Raises:
            WhoopAuthenticationError: 未配置访问令牌
        """
        if not settings.access_token:
            raise WhoopAuthenticationError(
                "WHOOP_ACCESS_TOKEN or WHOOP_API_KEY environment variable is required"
            )

        credentials = Credentials(
            access_token=settings.access_token,
            refresh_token=settings.WHOOP_REFRESH_TOKEN or None,
            client_id=settings.WHOOP_CLIENT_ID or None,
            client_secret=settings.WHOOP_CLIENT_SECRET or None,
        )
        kwargs.setdefault("credential_store", EnvFileCredentialStore(settings.ENV_FILE_PATH))
        return cls(credentials, **kwargs)

    @property
    def credentials(self) -> Credentials:
        """当前凭证快照"""
        return self._credentials

    async def close(self):
        """关闭HTTP客户端"""
        await self.http_client.aclose()

    async def __aenter__(self) -> "WhoopClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ============ OAuth ============

    def get_authorization_url(
        self,
        state: str = DEFAULT_AUTH_STATE,
        client_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
    ) -> str:
        """
        获取授权URL

        Args:
            state: 状态参数（用于防CSRF）
            client_id: 应用client_id（默认使用当前凭证）
            redirect_uri: 回调地址

        Returns:
            授权URL
        """
        params = {
            "client_id": client_id or self._credentials.client_id or "",
            "redirect_uri": redirect_uri or settings.WHOOP_REDIRECT_URI,
            "response_type": "code",
            "scope": " ".join(WHOOP_SCOPES),
            "state": state,
        }
        return f"{settings.authorization_url}?{urlencode(params)}"

    async def _post_token(self, data: Dict[str, str], error_class=WhoopTokenRefreshError) -> Dict[str, Any]:
        try:
            response = await self.http_client.post(
                self.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Whoop令牌请求异常: {str(e)}")
            raise error_class(f"token request failed: {str(e)}")

        if response.status_code != 200:
            logger.error(f"Whoop令牌请求失败: {response.status_code} {response.text}")
            raise error_class(
                f"token request failed (status {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            token_data = response.json()
        except ValueError:
            raise error_class("failed to parse token response", status_code=200, body=response.text)

        if not token_data.get("access_token"):
            raise error_class("token response missing access_token", status_code=200, body=response.text)

        return token_data

    async def exchange_code_for_token(
        self,
        code: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        用授权码换取访问令牌

        Args:
            code: 授权码
            client_id: 应用client_id
            client_secret: 应用client_secret
            redirect_uri: 回调地址（必须与授权时一致）

        Returns:
            令牌信息 {access_token, refresh_token, expires_in, token_type, scope}

        Raises:
            WhoopAuthenticationError: 交换失败
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": client_id or self._credentials.client_id or "",
            "client_secret": client_secret or self._credentials.client_secret or "",
            "redirect_uri": redirect_uri or settings.WHOOP_REDIRECT_URI,
        }
        token_data = await self._post_token(data, error_class=WhoopAuthenticationError)
        logger.info("成功获取Whoop访问令牌")
        return token_data

    async def _refresh_credentials(self) -> Credentials:
        """用refresh_token换取新令牌并替换当前凭证（调用方需持有刷新锁）"""
        current = self._credentials
        if not current.can_refresh:
            raise WhoopTokenRefreshError("refresh token, client id and client secret are required to refresh")

        data = {
            "grant_type": "refresh_token",
            "refresh_token": current.refresh_token,
            "client_id": current.client_id,
            "client_secret": current.client_secret,
            "scope": "offline",
        }
        token_data = await self._post_token(data)

        refreshed = current.model_copy(
            update={
                "access_token": token_data["access_token"],
                # 未返回新refresh_token时沿用旧的
                "refresh_token": token_data.get("refresh_token") or current.refresh_token,
            }
        )
        self._credentials = refreshed
        logger.info("成功刷新Whoop访问令牌")

        try:
            self.credential_store.save(refreshed)
        except Exception as e:
            logger.warning(f"保存刷新后的令牌失败（不影响本次请求）: {str(e)}")

        return refreshed

    async def refresh_access_token(self) -> Credentials:
        """
        刷新访问令牌

        Returns:
            新凭证

        Raises:
            WhoopTokenRefreshError: 刷新失败
        """
        async with self._refresh_lock:
            return await self._refresh_credentials()

    async def _refresh_after_unauthorized(self, stale_token: str) -> str:
        async with self._refresh_lock:
            current = self._credentials
            if current.access_token != stale_token:
                # 并发请求已经完成了刷新
                logger.info("访问令牌已被其他请求刷新，使用新令牌重试")
                return current.access_token
            logger.info("访问令牌已过期，尝试刷新...")
            refreshed = await self._refresh_credentials()
            return refreshed.access_token

    # ============ 请求 ============

    async def _send(self, url: str, access_token: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}",
        }
        try:
            return await self.http_client.get(url, headers=headers, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Whoop API请求超时: {url}")
            raise WhoopTransportError(f"request timed out: {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"Whoop API请求异常: {url} - {str(e)}")
            raise WhoopTransportError(f"request failed: {str(e)}") from e

    async def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        发送API请求

        401时最多刷新一次令牌并重试同一请求。

        Args:
            endpoint: API端点（不包含基础URL）
            params: 查询参数

        Returns:
            响应数据

        Raises:
            WhoopAPIError: API调用失败
        """
        url = f"{self.base_url}{endpoint}"

        await self.rate_limiter.acquire()
        access_token = self._credentials.access_token
        response = await self._send(url, access_token, params)

        if response.status_code == 401:
            if not self._credentials.can_refresh:
                logger.error(f"Whoop API认证失败且无法刷新令牌: {endpoint}")
                raise error_for_status(401, response.text, endpoint)

            access_token = await self._refresh_after_unauthorized(access_token)

            await self.rate_limiter.acquire()
            response = await self._send(url, access_token, params)
            if response.status_code == 401:
                logger.error(f"刷新令牌后仍然认证失败: {endpoint}")
                raise WhoopAuthenticationError(
                    "authentication failed even after token refresh",
                    status_code=401,
                    body=response.text,
                )

        if not response.is_success:
            logger.error(f"Whoop API请求失败: {endpoint} - {response.status_code}")
            raise error_for_status(response.status_code, response.text, endpoint)

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Whoop API响应解析失败: {endpoint}")
            raise WhoopParseError(
                f"{endpoint}: malformed JSON response",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(payload, dict):
            raise WhoopParseError(
                f"{endpoint}: unexpected response shape",
                status_code=response.status_code,
                body=response.text,
            )
        return payload

    async def _fetch_paginated(self, endpoint: str, window: DateWindow) -> List[Dict[str, Any]]:
        """按游标顺序拉取全部分页，页内顺序保持不变"""
        params: Dict[str, Any] = {**window.as_params(), "limit": self.page_size}
        records: List[Dict[str, Any]] = []
        pages = 0

        while True:
            page = await self._make_request(endpoint, params=dict(params))
            pages += 1

            data = page.get("data") or []
            if not isinstance(data, list):
                raise WhoopParseError(f"{endpoint}: 'data' is not a list")
            records.extend(data)

            next_token = page.get(NEXT_TOKEN_FIELD)
            if not next_token:
                break
            params[NEXT_TOKEN_PARAM] = next_token

        logger.debug(f"{endpoint}: {pages}页, {len(records)}条记录")
        return records

    async def fetch_records(self, kind: RecordKind, window: DateWindow) -> list:
        """
        拉取窗口内某类记录的全部数据

        Args:
            kind: 记录类型
            window: 查询窗口

        Returns:
            记录列表（按分页返回顺序）

        Raises:
            WhoopAPIError: API调用失败或记录无法解析
        """
        raw_records = await self._fetch_paginated(RECORD_ENDPOINTS[kind], window)

        model = RECORD_MODELS[kind]
        try:
            records = [model.model_validate(item) for item in raw_records]
        except ValidationError as e:
            logger.error(f"解析Whoop {kind.value}数据失败: {str(e)}")
            raise WhoopParseError(f"failed to parse {kind.value} data: {str(e)}") from e

        logger.info(f"成功获取{len(records)}条Whoop {kind.value}数据")
        return records

    async def get_user(self) -> WhoopUser:
        """
        获取当前用户信息

        Raises:
            WhoopAPIError: API调用失败
        """
        profile = await self._make_request(USER_PROFILE_ENDPOINT)
        try:
            return WhoopUser.model_validate(profile)
        except ValidationError as e:
            raise WhoopParseError(f"failed to parse user profile: {str(e)}") from e

    async def validate_connection(self) -> WhoopUser:
        """
        检查API连接与认证

        Raises:
            WhoopAPIError: 连接或认证失败
        """
        try:
            return await self.get_user()
        except WhoopAPIError as e:
            logger.error(f"Whoop API连接校验失败: {str(e)}")
            raise
