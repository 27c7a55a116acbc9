"""Copilot CLI 顶层包。

该包提供 Microsoft 365 Copilot 命令行客户端的核心实现，
包括配置加载、领域模型、MSAL 认证、Copilot API 适配、
SSE 流式解析以及一次性问答的编排逻辑。
"""

from copilot_cli.api.service import OneShotRunner
from copilot_cli.cli import main

__all__ = ["OneShotRunner", "main"]
