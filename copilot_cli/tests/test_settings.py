from pathlib import Path

from copilot_cli.config.settings import Settings


def test_yaml_config_file(monkeypatch, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("tenant_id: contoso\nhttp_timeout: 12\ngraph_base_url: https://example.com/beta/\n", encoding="utf-8")
    monkeypatch.setenv("COPILOT_CLI_CONFIG_FILE", str(cfg))
    s = Settings()
    assert s.tenant_id == "contoso"
    assert s.http_timeout == 12.0
    assert s.authority == "https://login.microsoftonline.com/contoso"
    assert s.graph_base_url == "https://example.com/beta"


def test_env_overrides_yaml(monkeypatch, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("tenant_id: contoso\n", encoding="utf-8")
    monkeypatch.setenv("COPILOT_CLI_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("COPILOT_CLI_TENANT_ID", "fabrikam")
    monkeypatch.setenv("COPILOT_CLI_LOG_LEVEL", "debug")
    s = Settings()
    assert s.tenant_id == "fabrikam"
    assert s.log_level == "DEBUG"


def test_token_cache_path(tmp_path):
    s = Settings(token_cache_dir=str(tmp_path), token_cache_file="cache.bin")
    assert s.token_cache_path == Path(tmp_path) / "cache.bin"
