"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
CLI 层只需捕获 BusinessError 即可统一输出错误信息并返回非零退出码。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "CONFIG_WRITE_ERROR"）。
        message: 用户可读错误信息。
        http_status: 相关的 HTTP 状态码，默认 400。
        extra: 其他补充字段（例如 body、path 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigError(BusinessError):
    """配置缺失或无效，例如 ~/.lazyai.yml 中没有 accessToken。"""


class TransportError(BusinessError):
    """网络层错误，例如连接失败、超时等。不做自动重试。"""


class AuthError(BusinessError):
    """凭证续期失败，或续期重试后仍然返回 401。"""


class UpstreamError(BusinessError):
    """上游 API 返回非预期状态码（401 之外的非 2xx）。

    body 保存原始响应体，便于排查问题。
    """

    def __init__(self, code: str, message: str, http_status: int = 502, body: str = "", **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)
        self.body = body


class DecodeError(BusinessError):
    """响应体无法解析为预期结构。body 为原始响应体。"""

    def __init__(self, code: str, message: str, body: str = "", **extra):
        super().__init__(code=code, message=message, http_status=502, **extra)
        self.body = body


class ValidationError(BusinessError):
    """参数或用户输入校验失败。"""


class CommandError(BusinessError):
    """外部命令（如 git）执行失败。"""
