"""SkyDeck 响应 JSON 的解析模型。

chat_v2 的响应有两种已知形态：

- 当前版本：{"data": {"conversation_id", "assistant_message_id", "rememberizer_api_query"}}
- 旧版本：{"data": {"conversation_id", "messages": [{"id", "type", "content", "streaming"}]}}

旧版本中需要从 messages 里找到第一条 type == "assistant" 且 streaming 为真的消息。
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = ""
    content: str = ""
    streaming: bool = False


def find_streaming_assistant(messages: List[MessagePayload]) -> Optional[MessagePayload]:
    for msg in messages:
        if msg.type == "assistant" and msg.streaming:
            return msg
    return None


class ChatData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    conversation_id: int
    assistant_message_id: Optional[int] = None
    rememberizer_api_query: Optional[Dict[str, Any]] = None
    messages: List[MessagePayload] = Field(default_factory=list)

    def resolve_assistant_message_id(self) -> Optional[int]:
        if self.assistant_message_id:
            return self.assistant_message_id
        msg = find_streaming_assistant(self.messages)
        return msg.id if msg else None


class ChatEnvelope(BaseModel):
    data: ChatData


class StreamData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    conversation_id: Optional[int] = None
    messages: List[MessagePayload] = Field(default_factory=list)


class StreamEnvelope(BaseModel):
    data: StreamData
