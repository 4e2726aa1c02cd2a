"""Unit tests for configuration loading."""
import logging
from pathlib import Path

from writers_toolkit.base.config import (
    LogConfig,
    ToolkitConfig,
    ToolsConfig,
    get_config,
    set_config,
    setup_logging,
)


def test_from_env_reads_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("WRITERS_TOOLKIT_TOOLS_DIR", str(tmp_path / "tools"))
    monkeypatch.setenv("WRITERS_TOOLKIT_TRACKING_DIR", str(tmp_path / "tracking"))
    monkeypatch.setenv("WRITERS_TOOLKIT_NODE", "/opt/node/bin/node")
    monkeypatch.setenv("WRITERS_TOOLKIT_KEEP_TRACKING", "true")
    monkeypatch.setenv("WRITERS_TOOLKIT_SAVE_DIR", str(tmp_path / "novel"))
    monkeypatch.setenv("WRITERS_TOOLKIT_RESULT_TTL", "30")

    cfg = ToolkitConfig.from_env()

    assert cfg.tools.tools_dir == tmp_path / "tools"
    assert cfg.tools.node_binary == "/opt/node/bin/node"
    assert cfg.tools.keep_tracking_files is True
    assert cfg.tools.result_ttl_seconds == 30.0
    assert cfg.projects.save_dir == tmp_path / "novel"
    # tracking dir is created eagerly
    assert (tmp_path / "tracking").is_dir()


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("WRITERS_TOOLKIT_TRACKING_DIR", str(tmp_path))
    monkeypatch.delenv("WRITERS_TOOLKIT_SAVE_DIR", raising=False)
    cfg = ToolkitConfig.from_env()
    assert cfg.tools.tracking_flag == "--output_tracking"
    assert cfg.projects.save_dir == Path.home() / "writing"


def test_get_and_set_config(tmp_path):
    custom = ToolkitConfig(tools=ToolsConfig(tracking_dir=tmp_path))
    set_config(custom)
    assert get_config() is custom


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "toolkit.log"
    cfg = ToolkitConfig(tools=ToolsConfig(tracking_dir=tmp_path), log=LogConfig(level="WARNING", file_path=log_file))

    setup_logging(cfg)
    logging.getLogger("writers_toolkit.test").warning("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()
