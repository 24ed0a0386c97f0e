"""SkyDeck 会话客户端。

本模块负责：

1. 把 OutboundMessageRequest 编码为 chat_v2 的 multipart 表单并提交。
2. 拉取助手回复的流式响应，并逐块写到输出。
3. 根据 401 检测 access token 过期，调用续期接口拿到新 token，
   立即写回 CredentialStore，然后把原请求原样重发一次。

每个逻辑操作（submit / stream_reply）的状态流转：

    IDLE -> SENT -> SUCCESS
                 -> UNAUTHORIZED -> REAUTHENTICATING -> RETRIED -> SUCCESS | FAILED

续期在一次操作内最多发生一次；重试后仍是 401 即终止（AuthError）。
"""

import json
from enum import Enum
from typing import BinaryIO, Callable, Dict, Iterator, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from lazyai.domain.exceptions import AuthError, BusinessError, DecodeError, TransportError, UpstreamError
from lazyai.domain.models import Credentials, OutboundMessageRequest, SubmitResult
from lazyai.domain.store import CredentialStore
from lazyai.infrastructure.logging.logger import logger
from lazyai.providers.registry import (
    ACCESS_COOKIE,
    CHAT_PATH,
    REFRESH_COOKIE,
    STREAMING_PATH,
    TOKEN_REFRESH_PATH,
    get_streaming_contract,
)
from lazyai.providers.schemas import ChatEnvelope, StreamEnvelope, find_streaming_assistant


HTTP_OK = 200
HTTP_NO_CONTENT = 204
HTTP_UNAUTHORIZED = 401


class OperationState(str, Enum):
    IDLE = "idle"
    SENT = "sent"
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    REAUTHENTICATING = "reauthenticating"
    RETRIED = "retried"
    FAILED = "failed"


class SkyDeckSessionClient:
    """带凭证续期的 SkyDeck 客户端。

    - access_token / refresh_token: 两个凭证以具名字段保存，每次构造请求时显式写入 Cookie 头；
      上游响应中的 Set-Cookie 不会留在 httpx 的 cookie jar 里。
    - state: 最近一次逻辑操作所处的状态，便于调试与测试。
    - renewal_count: 本实例累计调用续期接口的次数。

    一个实例只对应一组凭证，不应在多个线程间共享。
    """

    name = "skydeck"

    def __init__(
        self,
        settings,
        credentials: Credentials,
        store: CredentialStore,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._settings = settings
        self._store = store
        self._contract = get_streaming_contract(settings.streaming_contract)
        self.access_token = credentials.access_token
        self.refresh_token = credentials.refresh_token
        self.state = OperationState.IDLE
        self.renewal_count = 0
        self._http = httpx.Client(
            base_url=settings.skydeck_base_url,
            timeout=settings.http_timeout,
            transport=transport,
            trust_env=False,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SkyDeckSessionClient":
        return self

    def __exit__(self, *exc) -> bool:
        self.close()
        return False

    # ------------------------------------------------------------------
    # 对外操作
    # ------------------------------------------------------------------

    def submit(self, message: str, conversation_id: Optional[int] = None) -> SubmitResult:
        """提交一条用户消息，返回会话 ID 与待拉取的助手消息 ID。"""

        outbound = OutboundMessageRequest(
            message=message,
            model_id=self._settings.skydeck_model_id,
            conversation_id=conversation_id or None,
        )
        # multipart 字段：(None, bytes) 表示普通表单字段而不是文件
        files = [(key, (None, value.encode("utf-8"))) for key, value in outbound.to_form_fields().items()]

        def build() -> httpx.Request:
            return self._http.build_request("POST", CHAT_PATH, files=files, headers=self._auth_headers())

        logger.info(
            "skydeck.submit",
            extra={"extra": {"conversation_id": outbound.conversation_id, "chars": len(message)}},
        )
        response = self._execute("submit", build)
        return self._parse_submit_response(response)

    def stream_reply(self, assistant_message_id: int) -> Iterator[bytes]:
        """拉取助手回复，按到达顺序逐块产出响应体字节。

        这是一个生成器：请求在第一次迭代时才发出，错误也在迭代时抛出。
        """

        def build() -> httpx.Request:
            return self._build_stream_request(assistant_message_id)

        logger.info("skydeck.stream_reply", extra={"extra": {"message_id": assistant_message_id}})
        response = self._execute("stream_reply", build, stream=True)
        try:
            for chunk in response.iter_bytes():
                if chunk:
                    yield chunk
        except httpx.RequestError as e:
            raise TransportError(code="NETWORK_ERROR", message=f"stream interrupted: {e}")
        finally:
            response.close()

    def copy_reply(self, assistant_message_id: int, sink: BinaryIO) -> int:
        """把助手回复写入 sink，返回写入的字节数。

        raw 格式下每收到一块就 write + flush；envelope 格式下需要完整 JSON，
        读完后只写出流式助手消息的 content。
        """

        if self._settings.stream_format == "envelope":
            body = b"".join(self.stream_reply(assistant_message_id))
            content = self._extract_envelope_content(body)
            sink.write(content)
            sink.flush()
            return len(content)

        total = 0
        for chunk in self.stream_reply(assistant_message_id):
            sink.write(chunk)
            sink.flush()
            total += len(chunk)
        return total

    def reauthenticate(self) -> str:
        """用 refresh token 换取新的 access token，并立即写回 CredentialStore。

        续期请求只携带 refresh cookie。成功时上游返回 204，新 token 在
        Set-Cookie 中；其他状态码直接抛 AuthError，不再重试。
        """

        request = self._http.build_request(
            "POST",
            TOKEN_REFRESH_PATH,
            headers={
                "Referer": self._settings.skydeck_referrer_url,
                "Cookie": f"{REFRESH_COOKIE}={self.refresh_token}",
            },
        )
        self.renewal_count += 1
        response = self._send(request)
        if response.status_code != HTTP_NO_CONTENT:
            logger.warning("skydeck.token_refresh_failed", extra={"extra": {"status": response.status_code}})
            raise AuthError(
                code="TOKEN_REFRESH_FAILED",
                message=(
                    f"token refresh returned {response.status_code}; "
                    "update skydeck.refreshToken in your config file"
                ),
                http_status=response.status_code,
                body=response.text,
            )
        new_token = response.cookies.get(ACCESS_COOKIE)
        if not new_token:
            raise AuthError(
                code="TOKEN_REFRESH_NO_COOKIE",
                message=f"token refresh succeeded but no {ACCESS_COOKIE} cookie was returned",
                http_status=response.status_code,
            )
        self.access_token = new_token
        self._store.save_access_token(new_token)
        logger.info("skydeck.token_refreshed")
        return new_token

    # ------------------------------------------------------------------
    # 状态机
    # ------------------------------------------------------------------

    def _execute(
        self,
        operation: str,
        build_request: Callable[[], httpx.Request],
        stream: bool = False,
    ) -> httpx.Response:
        """执行一次逻辑操作：原始请求，加上至多一次续期后的重试。

        build_request 每次调用都会用当前 access token 重新构造同一个请求。
        返回状态码为 200 的响应；stream=True 时响应体尚未读取，由调用方负责关闭。
        """

        self._transition(operation, OperationState.IDLE)
        response = self._send(build_request(), stream=stream)
        self._transition(operation, OperationState.SENT)
        if response.status_code != HTTP_UNAUTHORIZED:
            return self._accept(operation, response)

        response.close()
        self._transition(operation, OperationState.UNAUTHORIZED)
        self._transition(operation, OperationState.REAUTHENTICATING)
        try:
            self.reauthenticate()
        except BusinessError:
            self._transition(operation, OperationState.FAILED)
            raise

        response = self._send(build_request(), stream=stream)
        self._transition(operation, OperationState.RETRIED)
        if response.status_code == HTTP_UNAUTHORIZED:
            body = self._read_text(response)
            self._transition(operation, OperationState.FAILED)
            raise AuthError(
                code="UNAUTHORIZED",
                message=f"{operation}: still unauthorized after renewing the access token",
                http_status=HTTP_UNAUTHORIZED,
                body=body,
            )
        return self._accept(operation, response)

    def _accept(self, operation: str, response: httpx.Response) -> httpx.Response:
        if response.status_code == HTTP_OK:
            self._transition(operation, OperationState.SUCCESS)
            return response
        body = self._read_text(response)
        self._transition(operation, OperationState.FAILED)
        raise UpstreamError(
            code="UPSTREAM_ERROR",
            message=f"{operation}: received non-200 response code: {response.status_code}, body: {body}",
            http_status=response.status_code,
            body=body,
        )

    def _transition(self, operation: str, state: OperationState) -> None:
        self.state = state
        logger.debug("skydeck.state", extra={"extra": {"operation": operation, "state": state.value}})

    # ------------------------------------------------------------------
    # HTTP 细节
    # ------------------------------------------------------------------

    def _send(self, request: httpx.Request, stream: bool = False) -> httpx.Response:
        try:
            response = self._http.send(request, stream=stream)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            self.state = OperationState.FAILED
            raise TransportError(code="NETWORK_ERROR", message=f"{request.method} {request.url.path}: {e}")
        finally:
            self._http.cookies.clear()
        return response

    def _auth_headers(self) -> Dict[str, str]:
        cookies = [f"{ACCESS_COOKIE}={self.access_token}"]
        if self._settings.attach_refresh_cookie:
            cookies.append(f"{REFRESH_COOKIE}={self.refresh_token}")
        return {
            "Referer": self._settings.skydeck_referrer_url,
            "Cookie": "; ".join(cookies),
        }

    def _build_stream_request(self, message_id: int) -> httpx.Request:
        headers = self._auth_headers()
        if self._contract.encoding == "query":
            return self._http.build_request(
                self._contract.method,
                STREAMING_PATH,
                params={"message_id": message_id},
                headers=headers,
            )
        return self._http.build_request(
            self._contract.method,
            STREAMING_PATH,
            json={"message_id": message_id},
            headers=headers,
        )

    @staticmethod
    def _read_text(response: httpx.Response) -> str:
        try:
            response.read()
        except httpx.RequestError as e:
            raise TransportError(code="NETWORK_ERROR", message=f"failed to read response body: {e}")
        finally:
            response.close()
        return response.text

    @staticmethod
    def _parse_submit_response(response: httpx.Response) -> SubmitResult:
        body = response.text
        try:
            envelope = ChatEnvelope.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise DecodeError(code="DECODE_ERROR", message=f"error decoding chat response: {e}", body=body)
        assistant_message_id = envelope.data.resolve_assistant_message_id()
        if not assistant_message_id:
            raise DecodeError(
                code="NO_ASSISTANT_MESSAGE",
                message="no streaming assistant message found in the chat response",
                body=body,
            )
        return SubmitResult(
            conversation_id=envelope.data.conversation_id,
            assistant_message_id=assistant_message_id,
        )

    @staticmethod
    def _extract_envelope_content(body: bytes) -> bytes:
        """从 JSON 信封中取出流式助手消息内容；不是 JSON 时原样返回。"""

        try:
            raw = json.loads(body)
        except ValueError:
            return body
        try:
            envelope = StreamEnvelope.model_validate(raw)
        except PydanticValidationError as e:
            raise DecodeError(
                code="DECODE_ERROR",
                message=f"error decoding streaming response: {e}",
                body=body.decode("utf-8", errors="replace"),
            )
        msg = find_streaming_assistant(envelope.data.messages)
        if msg is None:
            raise DecodeError(
                code="NO_ASSISTANT_MESSAGE",
                message="no streaming assistant message found in the response",
                body=body.decode("utf-8", errors="replace"),
            )
        return msg.content.encode("utf-8")
