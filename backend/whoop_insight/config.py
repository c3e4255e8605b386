"""
应用配置管理
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置"""

    # 应用配置
    APP_NAME: str = "whoop-insight"
    APP_VERSION: str = "1.0.0"
    TZ: str = "UTC"

    # 日志配置
    LOG_LEVEL: str = "INFO"

    # Whoop凭证（WHOOP_ACCESS_TOKEN优先，WHOOP_API_KEY兼容旧配置）
    WHOOP_ACCESS_TOKEN: str = ""
    WHOOP_API_KEY: str = ""
    WHOOP_REFRESH_TOKEN: str = ""
    WHOOP_CLIENT_ID: str = ""
    WHOOP_CLIENT_SECRET: str = ""

    # Whoop API
    WHOOP_API_BASE_URL: str = "https://api.prod.whoop.com/developer"
    WHOOP_OAUTH_BASE_URL: str = "https://api.prod.whoop.com/oauth/oauth2"
    WHOOP_REDIRECT_URI: str = "http://localhost:3000/callback"

    # 限流（每分钟请求数 + 突发容量），等待超时秒数
    WHOOP_RATE_LIMIT: int = 100
    WHOOP_RATE_BURST: int = 10
    WHOOP_RATE_LIMIT_TIMEOUT: Optional[float] = 60.0

    # 请求配置
    WHOOP_REQUEST_TIMEOUT: float = 30.0
    WHOOP_PAGE_SIZE: int = 25

    # 刷新后的令牌写回的.env文件
    ENV_FILE_PATH: str = ".env"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"  # 忽略额外的环境变量
    )

    @property
    def access_token(self) -> str:
        """当前访问令牌"""
        return self.WHOOP_ACCESS_TOKEN or self.WHOOP_API_KEY

    @property
    def token_url(self) -> str:
        """OAuth令牌端点"""
        return f"{self.WHOOP_OAUTH_BASE_URL}/token"

    @property
    def authorization_url(self) -> str:
        """OAuth授权端点"""
        return f"{self.WHOOP_OAUTH_BASE_URL}/auth"


settings = Settings()
