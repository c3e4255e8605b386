"""
数据源集成基类
"""
from whoop_insight.integrations.base.credentials import (
    Credentials,
    CredentialStore,
    EnvFileCredentialStore,
    NullCredentialStore,
)

__all__ = ["Credentials", "CredentialStore", "EnvFileCredentialStore", "NullCredentialStore"]
