"""领域层模型与协议。

包含：
- models: ClientConfig / ConversationRecord / StreamChunk / GeneratedResult 等模型。
- conversation: 本地会话日志 ConversationLog。
- exceptions: 业务异常类型定义。
"""
