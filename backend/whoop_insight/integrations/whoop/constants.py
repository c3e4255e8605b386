"""
Whoop常量定义
"""
from whoop_insight.models.whoop import RecordKind

# API资源端点（相对于 WHOOP_API_BASE_URL）
USER_PROFILE_ENDPOINT = "/v2/user/profile/basic"

RECORD_ENDPOINTS = {
    RecordKind.RECOVERY: "/v2/recovery",
    RecordKind.SLEEP: "/v2/activity/sleep",
    RecordKind.WORKOUT: "/v2/activity/workout",
    RecordKind.CYCLE: "/v2/cycle",
}

# 分页参数：请求用 nextToken，响应返回 next_token
NEXT_TOKEN_PARAM = "nextToken"
NEXT_TOKEN_FIELD = "next_token"

# OAuth Scopes
WHOOP_SCOPES = [
    "read:recovery",
    "read:sleep",
    "read:workout",
    "read:cycles",
    "read:profile",
    "offline",  # 获取refresh_token
]

DEFAULT_AUTH_STATE = "whoop-insight-auth"
