"""领域层模型与协议。

包含：
- models: Conversation / Message / SseEvent / ChatRequest 等数据结构。
- exceptions: 业务异常类型定义及其退出码。
"""
