"""lazyai 内部共享的数据模型。

- Credentials: SkyDeck 的两个凭证（短期 access、长期 refresh）。
- OutboundMessageRequest: 发送给 chat_v2 接口的一条消息。
- SubmitResult: chat_v2 返回的会话 ID 与待拉取的助手消息 ID。
- Story: Pivotal Tracker 中的一个 story。

这些结构只描述数据，不涉及 HTTP；编码/解析由 providers 层负责。
"""

from dataclasses import dataclass
from typing import Dict, Optional


# chat_v2 中 regenerate_message_id 的哨兵值：-1 表示“不是重新生成”
NOT_A_REGENERATION = -1


@dataclass
class Credentials:
    """SkyDeck 凭证。

    - access_token: 短期凭证，每个请求都以 eastagile_access cookie 携带。
    - refresh_token: 长期凭证，只发往续期接口。
    """

    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        # 避免凭证出现在日志或 traceback 中
        return "Credentials(access_token='***', refresh_token='***')"


@dataclass
class OutboundMessageRequest:
    """一次 chat_v2 请求的内容。

    conversation_id 为 None 时表示由服务端分配新会话，此时表单中不出现该字段。
    """

    message: str
    model_id: int
    conversation_id: Optional[int] = None
    regenerate_message_id: int = NOT_A_REGENERATION
    non_ai: bool = False

    def to_form_fields(self) -> Dict[str, str]:
        """转换为 multipart 表单字段（全部为字符串）。"""

        fields = {
            "message": self.message,
            "model_id": str(self.model_id),
        }
        if self.conversation_id is not None:
            fields["conversation_id"] = str(self.conversation_id)
        fields["regenerate_message_id"] = str(self.regenerate_message_id)
        fields["non_ai"] = "true" if self.non_ai else "false"
        return fields


@dataclass
class SubmitResult:
    """chat_v2 的结果。

    assistant_message_id 对应一条仍在生成中的助手消息，
    必须且只能被后续的一次流式拉取消费。
    """

    conversation_id: int
    assistant_message_id: int


@dataclass
class Story:
    """Pivotal Tracker story."""

    id: int
    name: str
    description: str = ""
    url: str = ""
