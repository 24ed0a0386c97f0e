"""lazyai 顶层包。

AiDD 命令行工具集：SkyDeck 对话（带凭证自动续期的会话客户端）、
提示词生成（code / pr）以及 Pivotal Tracker story 选择。
"""

from lazyai.commands import ChatCommand, ChatOptions
from lazyai.providers.skydeck_client import SkyDeckSessionClient

__all__ = ["ChatCommand", "ChatOptions", "SkyDeckSessionClient"]
