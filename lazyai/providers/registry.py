"""SkyDeck 接口与流式契约配置。

流式拉取接口在不同上游版本中形态不一致：

- 请求：GET + 查询参数 message_id，或 POST + JSON 体 {"message_id": ...}。
- 响应：原始文本流，或包含 data.messages 数组的 JSON 信封。

这里把每种请求形态登记为一个具名契约，由 Settings.streaming_contract /
Settings.stream_format 选择，不在客户端代码里写死。"""

from dataclasses import dataclass
from typing import Literal, Mapping


CHAT_PATH = "/api/v1/conversations/chat_v2/"
STREAMING_PATH = "/api/v1/conversations/streaming/"
TOKEN_REFRESH_PATH = "/api/v1/authentication/token/refresh/"

ACCESS_COOKIE = "eastagile_access"
REFRESH_COOKIE = "eastagile_refresh"


@dataclass(frozen=True)
class StreamingContract:
    """流式接口的一种请求形态。"""

    name: str
    method: Literal["GET", "POST"]
    encoding: Literal["query", "json"]


QUERY_CONTRACT = StreamingContract(name="query", method="GET", encoding="query")
JSON_CONTRACT = StreamingContract(name="json", method="POST", encoding="json")

STREAMING_CONTRACTS: Mapping[str, StreamingContract] = {
    "query": QUERY_CONTRACT,
    "json": JSON_CONTRACT,
}


def get_streaming_contract(name: str) -> StreamingContract:
    """根据名称获取 StreamingContract，名称不区分大小写。"""

    key = name.lower()
    for k, contract in STREAMING_CONTRACTS.items():
        if k == key:
            return contract
    raise KeyError(f"Unknown streaming contract: {name!r}")
