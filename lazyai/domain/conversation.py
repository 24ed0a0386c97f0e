"""会话 ID 解析。

三个来源按优先级从低到高：

1. 上次持久化的会话 ID（~/.lazyai.yml 中的 skydeck.convoID）。
2. 命令行显式指定的 --conversation。
3. --new，强制不带会话 ID，由服务端分配新会话。

0 与 None 都表示“未提供”。本模块只包含纯函数，不读写任何状态。
"""

from typing import Optional


def _given(value: Optional[int]) -> bool:
    return bool(value)


def resolve_conversation_id(
    persisted_id: Optional[int],
    explicit_id: Optional[int],
    force_new: bool,
) -> Optional[int]:
    """计算本次提交使用的会话 ID，None 表示让服务端新建会话。

    同时给出 explicit_id 与 force_new 时，force_new 生效，
    视为用户有意覆盖，而不是错误。
    """

    if force_new:
        return None
    if _given(explicit_id):
        return explicit_id
    if _given(persisted_id):
        return persisted_id
    return None


def conversation_id_to_persist(explicit_id: Optional[int], returned_id: int) -> int:
    """提交完成后需要持久化的会话 ID：优先显式指定的 ID，否则用服务端返回的 ID。"""

    if _given(explicit_id):
        return int(explicit_id)
    return returned_id


def conversation_url(web_url: str, conversation_id: int) -> str:
    return f"{web_url.rstrip('/')}/conversations/{conversation_id}"
