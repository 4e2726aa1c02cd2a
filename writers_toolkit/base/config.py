# ============================================================================
# writers_toolkit/base/config.py
# Application Configuration Management
# ============================================================================
#
# PURPOSE:
# Defines every setting the tool execution core reads. Values come from
# environment variables (WRITERS_TOOLKIT_*) with defaults suitable for a
# single-user desktop install.
#
# KEY CONCEPTS:
# 1. Frozen dataclasses: one immutable section per concern
# 2. from_env(): the only place environment variables are parsed
# 3. get_config()/set_config(): one shared instance, replaceable in tests
#
# ============================================================================

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# writers_toolkit/base/config.py -> parents[2] is the application root
APP_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ============================================================================
# Tool Execution Configuration
# ============================================================================

@dataclass(frozen=True)
class ToolsConfig:
    # Directory holding the tool scripts; a tool name is a file name inside it
    tools_dir: Path = field(default_factory=lambda: APP_ROOT / "tools")

    # JSON catalog with tool metadata (title, description, option schema)
    catalog_path: Path = field(default_factory=lambda: APP_ROOT / "tools.json")

    # Interpreter used for .js tools
    node_binary: str = "node"

    # Where per-run tracking files are created (<tracking_dir>/<run_id>.txt)
    tracking_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    # Flag through which a tool learns its tracking file path
    tracking_flag: str = "--output_tracking"

    # Leave tracking files on disk after a run (debugging aid)
    keep_tracking_files: bool = False

    # Max bytes read from a pipe per chunk
    read_chunk_size: int = 4096

    # Seconds a finished run's result waits to be collected
    result_ttl_seconds: float = 300.0


# ============================================================================
# Project Configuration
# ============================================================================

@dataclass(frozen=True)
class ProjectConfig:
    # Root folder that holds the user's writing projects
    projects_dir: Path = field(default_factory=lambda: Path.home() / "writing")

    # Where tools are told to save output when no project is selected
    default_save_dir: Optional[Path] = None

    @property
    def save_dir(self) -> Path:
        return self.default_save_dir or self.projects_dir


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # A rotating log file is written only when a path is given
    file_path: Optional[Path] = None
    max_file_size_mb: int = 10
    backup_count: int = 5


# ============================================================================
# Master Configuration Container
# ============================================================================

@dataclass
class ToolkitConfig:
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    projects: ProjectConfig = field(default_factory=ProjectConfig)
    log: LogConfig = field(default_factory=LogConfig)
    debug: bool = False

    def __post_init__(self):
        # Tracking files are written by child processes; the directory must exist
        self.tools.tracking_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> "ToolkitConfig":
        defaults = ToolsConfig()

        tools = ToolsConfig(
            tools_dir=Path(os.getenv("WRITERS_TOOLKIT_TOOLS_DIR", str(defaults.tools_dir))),
            catalog_path=Path(os.getenv("WRITERS_TOOLKIT_CATALOG", str(defaults.catalog_path))),
            node_binary=os.getenv("WRITERS_TOOLKIT_NODE", defaults.node_binary),
            tracking_dir=Path(os.getenv("WRITERS_TOOLKIT_TRACKING_DIR", str(defaults.tracking_dir))),
            keep_tracking_files=_env_bool("WRITERS_TOOLKIT_KEEP_TRACKING", "false"),
            read_chunk_size=int(os.getenv("WRITERS_TOOLKIT_CHUNK_SIZE", str(defaults.read_chunk_size))),
            result_ttl_seconds=float(os.getenv("WRITERS_TOOLKIT_RESULT_TTL", str(defaults.result_ttl_seconds))),
        )

        save_dir = os.getenv("WRITERS_TOOLKIT_SAVE_DIR")
        projects = ProjectConfig(
            projects_dir=Path(os.getenv("WRITERS_TOOLKIT_PROJECTS_DIR", str(Path.home() / "writing"))),
            default_save_dir=Path(save_dir) if save_dir else None,
        )

        log_file = os.getenv("WRITERS_TOOLKIT_LOG_FILE")
        log = LogConfig(
            level=os.getenv("WRITERS_TOOLKIT_LOG_LEVEL", "INFO"),
            file_path=Path(log_file) if log_file else None,
        )

        return cls(
            tools=tools,
            projects=projects,
            log=log,
            debug=_env_bool("WRITERS_TOOLKIT_DEBUG", "false"),
        )


# ============================================================================
# Global Configuration Singleton
# ============================================================================

_config: Optional[ToolkitConfig] = None


def get_config() -> ToolkitConfig:
    """
    Get the global configuration instance, loading it from the environment
    on first use.
    """
    global _config
    if _config is None:
        _config = ToolkitConfig.from_env()
    return _config


def set_config(config: Optional[ToolkitConfig]) -> None:
    """Replace the global configuration (None forces a reload from env)."""
    global _config
    _config = config


def setup_logging(config: Optional[ToolkitConfig] = None) -> None:
    """
    Configure Python's logging system based on our settings.
    Call this once at application startup.
    """
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_path is not None:
        from logging.handlers import RotatingFileHandler

        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                cfg.log.file_path,
                maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
                backupCount=cfg.log.backup_count,
            )
        )

    level = "DEBUG" if cfg.debug else cfg.log.level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
    logger.debug(f"[config] Logging configured at {level}")
