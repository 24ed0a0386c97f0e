"""领域层模型与协议。

包含：
- models: Credentials / OutboundMessageRequest / SubmitResult / Story。
- conversation: 会话 ID 解析的纯函数。
- store: CredentialStore 持久化协议。
- exceptions: 业务异常类型定义。
"""
