from typing import Dict, Optional, Protocol

from .models import Credentials


class CredentialStore(Protocol):
    """凭证与会话状态的持久化协议。

    SessionClient 只依赖 save_access_token；命令层负责其余读写。
    """

    def load_credentials(self) -> Credentials:
        ...

    def save_access_token(self, access_token: str) -> None:
        ...

    def load_conversation_id(self) -> Optional[int]:
        ...

    def save_conversation_id(self, conversation_id: int) -> None:
        ...

    def load_section(self, name: str) -> Dict[str, object]:
        ...
