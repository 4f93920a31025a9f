"""
凭据查找
按顺序尝试多个服务键 (与 Git Credential Manager 保存 Azure DevOps 凭据时使用的键一致)，
第一个返回非空凭据的键胜出。
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import keyring
from keyring.errors import KeyringError

from errors import CredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    account: str
    password: str


class CredentialStore(ABC):
    """外部键值凭据存储"""

    @abstractmethod
    def get(self, service: str, account: str) -> Optional[Credential]:
        pass


class KeyringCredentialStore(CredentialStore):
    """基于系统钥匙串 (Windows Credential Manager / macOS Keychain / Secret Service)"""

    def __init__(self, namespace: str = ""):
        self.namespace = namespace

    def get(self, service: str, account: str) -> Optional[Credential]:
        name = f"{self.namespace}:{service}" if self.namespace else service
        found = keyring.get_credential(name, account)
        if found is None or found.password is None:
            return None
        return Credential(account=found.username or account, password=found.password)


def credential_service_keys(organization: str) -> List[str]:
    return [
        f"{organization}@azure.devops",
        f"git:https://{organization}@dev.azure.com/{organization}",
        f"git:https://dev.azure.com/{organization}",
    ]


def find_credentials(store: CredentialStore, email: str, organization: str) -> Credential:
    """依次探测各服务键，全部落空时抛出 CredentialError"""
    for service in credential_service_keys(organization):
        try:
            credential = store.get(service, email)
        except KeyringError as e:
            logger.warning(f"⚠️ 读取凭据 {service} 失败: {e}")
            continue
        if credential is not None:
            logger.info(f"✅ 已找到 git 凭据: {service}")
            return credential

    raise CredentialError(f"未找到 {email} 在组织 {organization} 下的 git 凭据。")
