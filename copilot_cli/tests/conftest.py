"""
测试公共配置：日志与 token 缓存写入临时目录，不写用户主目录。
"""

import os
import tempfile
from pathlib import Path

import pytest

# logger 在导入 copilot_cli 时即创建文件，因此要在任何测试模块导入前设置
_SANDBOX = Path(tempfile.mkdtemp(prefix="copilot-cli-tests-"))
os.environ["COPILOT_CLI_LOG_DIR"] = str(_SANDBOX / "logs")
os.environ["COPILOT_CLI_TOKEN_CACHE_DIR"] = str(_SANDBOX / "cache")


@pytest.fixture(autouse=True)
def isolated_token_cache(monkeypatch, tmp_path):
    """每个测试使用独立的 token 缓存目录。"""
    from copilot_cli.config.settings import settings

    monkeypatch.setattr(settings, "token_cache_dir", str(tmp_path / "cache"))
    return tmp_path / "cache"
