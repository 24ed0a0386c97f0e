"""上游 API 集成层。

该包下的模块负责：
- 维护 SkyDeck 接口路径与流式契约 (registry)。
- 解析 SkyDeck 响应 JSON (schemas)。
- SkyDeck 会话客户端 (skydeck_client) 与 Pivotal Tracker 客户端 (pivotal_client)。
"""

from typing import Optional

import httpx

from lazyai.domain.store import CredentialStore
from lazyai.providers.skydeck_client import SkyDeckSessionClient


def create_session_client(
    settings,
    store: CredentialStore,
    transport: Optional[httpx.BaseTransport] = None,
) -> SkyDeckSessionClient:
    """从 store 读取凭证并创建 SkyDeck 会话客户端；凭证缺失时抛 ConfigError。"""

    credentials = store.load_credentials()
    return SkyDeckSessionClient(settings, credentials, store, transport=transport)
