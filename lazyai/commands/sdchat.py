"""sdchat command: send a message to SkyDeck and stream the reply."""

from __future__ import annotations

import sys
import webbrowser
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional, TextIO

from lazyai.domain.conversation import conversation_id_to_persist, conversation_url, resolve_conversation_id
from lazyai.domain.exceptions import CommandError, ValidationError
from lazyai.domain.models import SubmitResult
from lazyai.domain.store import CredentialStore
from lazyai.infrastructure.logging.logger import logger
from lazyai.providers import create_session_client


@dataclass
class ChatOptions:
    """Flags of a single sdchat invocation.

    Attributes:
        conversation_id: --conversation；0 表示未指定。
        open_in_browser: --open，打开 Web UI 而不是在终端流式输出。
        new_conversation: --new，强制新建会话（优先级最高）。
    """

    conversation_id: int = 0
    open_in_browser: bool = False
    new_conversation: bool = False


def read_message(argument: Optional[str], stdin: Optional[TextIO] = None) -> str:
    """Take the message from the positional argument, or from piped stdin."""

    if argument:
        message = argument
    elif stdin is not None and not stdin.isatty():
        message = stdin.read()
    else:
        message = ""
    message = message.strip()
    if not message:
        raise ValidationError(
            code="EMPTY_MESSAGE",
            message="Please provide a message to send either as an argument or through stdin",
        )
    return message


class ChatCommand:
    """Drive one sdchat invocation.

    resolve conversation -> submit -> persist conversation id -> open browser | stream reply.
    """

    def __init__(
        self,
        settings,
        store: CredentialStore,
        client_factory: Callable = create_session_client,
        open_url: Callable[[str], bool] = webbrowser.open,
        stdout: Optional[BinaryIO] = None,
    ):
        self._settings = settings
        self._store = store
        self._client_factory = client_factory
        self._open_url = open_url
        self._stdout = stdout if stdout is not None else sys.stdout.buffer

    def run(self, message: str, options: ChatOptions) -> SubmitResult:
        with self._client_factory(self._settings, self._store) as client:
            persisted_id = self._store.load_conversation_id()
            target_id = resolve_conversation_id(
                persisted_id,
                options.conversation_id,
                options.new_conversation,
            )
            result = client.submit(message, target_id)

            convo_id = conversation_id_to_persist(options.conversation_id, result.conversation_id)
            self._store.save_conversation_id(convo_id)
            logger.info(
                "sdchat.submitted",
                extra={"extra": {"conversation_id": convo_id, "assistant_message_id": result.assistant_message_id}},
            )

            if options.open_in_browser:
                url = conversation_url(self._settings.skydeck_web_url, convo_id)
                if not self._open_url(url):
                    raise CommandError(code="BROWSER_ERROR", message=f"Error opening URL: {url}")
                return result

            client.copy_reply(result.assistant_message_id, self._stdout)
            return result
