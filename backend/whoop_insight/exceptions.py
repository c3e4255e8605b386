"""
错误分类
"""
from typing import Optional, Dict, Type

# 错误信息中保留的响应体长度
BODY_SNIPPET_LENGTH = 500


class WhoopAPIError(Exception):
    """Whoop API错误"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body[:BODY_SNIPPET_LENGTH] if body else ""


class WhoopTransportError(WhoopAPIError):
    """网络或超时错误"""


class WhoopAuthenticationError(WhoopAPIError):
    """401，刷新后仍未通过认证"""


class WhoopTokenRefreshError(WhoopAuthenticationError):
    """令牌刷新失败"""


class WhoopBadRequestError(WhoopAPIError):
    """400，参数错误"""


class WhoopForbiddenError(WhoopAPIError):
    """403，权限不足"""


class WhoopNotFoundError(WhoopAPIError):
    """404"""


class WhoopRateLimitError(WhoopAPIError):
    """429，远端限流"""


class WhoopServerError(WhoopAPIError):
    """5xx"""


class WhoopUnknownError(WhoopAPIError):
    """其他非2xx响应"""


class WhoopParseError(WhoopAPIError):
    """响应体无法解析"""


class RateLimitTimeoutError(WhoopAPIError):
    """本地限流等待超时"""


class InvalidRequestError(ValueError):
    """本地参数校验失败（在发起任何网络请求之前）"""


_STATUS_ERRORS: Dict[int, Type[WhoopAPIError]] = {
    400: WhoopBadRequestError,
    401: WhoopAuthenticationError,
    403: WhoopForbiddenError,
    404: WhoopNotFoundError,
    429: WhoopRateLimitError,
}

_STATUS_MESSAGES: Dict[int, str] = {
    400: "bad request: check your parameters",
    401: "authentication failed: invalid or expired access token",
    403: "access denied: insufficient permissions",
    404: "resource not found",
    429: "rate limit exceeded: too many requests",
}


def error_for_status(status_code: int, body: str = "", endpoint: str = "") -> WhoopAPIError:
    """
    根据HTTP状态码构造对应的错误

    Args:
        status_code: HTTP状态码
        body: 响应体
        endpoint: 请求端点（用于错误信息）

    Returns:
        分类后的错误实例
    """
    if status_code >= 500:
        error_class = WhoopServerError
        message = "Whoop API server error"
    else:
        error_class = _STATUS_ERRORS.get(status_code, WhoopUnknownError)
        message = _STATUS_MESSAGES.get(status_code, "API request failed")

    prefix = f"{endpoint}: " if endpoint else ""
    return error_class(
        f"{prefix}{message} (status {status_code})",
        status_code=status_code,
        body=body,
    )
