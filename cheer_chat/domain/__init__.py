"""领域层模型与协议。

包含：
- models: 统一的 GenerationRequest / GenerationResult 模型。
- conversation: 用户消息记录 ConversationTurn 及 ConversationStore 抽象。
- exceptions: 业务异常类型定义。
"""
