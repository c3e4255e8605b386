"""
凭证与凭证存储抽象接口
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from dotenv import set_key
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """访问令牌 + 可选的刷新材料（不可变，刷新时整体替换）"""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def can_refresh(self) -> bool:
        """是否具备刷新令牌所需的全部材料"""
        return bool(self.refresh_token and self.client_id and self.client_secret)


class CredentialStore(ABC):
    """凭证存储抽象接口"""

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        """
        保存刷新后的凭证

        Args:
            credentials: 新凭证
        """
        pass


class NullCredentialStore(CredentialStore):
    """不做任何持久化"""

    def save(self, credentials: Credentials) -> None:
        logger.debug("未配置凭证存储，跳过保存")


class EnvFileCredentialStore(CredentialStore):
    """把刷新后的令牌写回.env文件（保留文件中的其他配置）"""

    def __init__(self, path: str = ".env"):
        self.path = Path(path)

    def save(self, credentials: Credentials) -> None:
        self.path.touch(mode=0o600, exist_ok=True)
        set_key(str(self.path), "WHOOP_ACCESS_TOKEN", credentials.access_token)
        if credentials.refresh_token:
            set_key(str(self.path), "WHOOP_REFRESH_TOKEN", credentials.refresh_token)
        logger.info(f"已将刷新后的令牌写入 {self.path}")
