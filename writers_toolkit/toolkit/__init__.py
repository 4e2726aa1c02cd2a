# ============================================================================
# writers_toolkit/toolkit/__init__.py
# Toolkit Package - Tool Integration Layer
# ============================================================================
#
# PURPOSE:
# Everything that knows how a tool is described and invoked, without
# touching processes:
# - **registry.py**: Tool catalog (metadata + option schema)
# - **arguments.py**: Option values -> command line, per-tool strategies
# - **tracking.py**: Post-run discovery of files a tool reports creating
#
# ============================================================================

from writers_toolkit.toolkit.arguments import (
    ArgumentStrategy,
    ArgumentTranslator,
    CommandLine,
    TokensCounterStrategy,
)
from writers_toolkit.toolkit.registry import ToolCatalog, ToolDefinition, ToolOption
from writers_toolkit.toolkit.tracking import ArtifactTracker

__all__ = [
    "ArgumentStrategy",
    "ArgumentTranslator",
    "ArtifactTracker",
    "CommandLine",
    "TokensCounterStrategy",
    "ToolCatalog",
    "ToolDefinition",
    "ToolOption",
]
