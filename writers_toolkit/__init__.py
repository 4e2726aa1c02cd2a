# ============================================================================
# writers_toolkit/__init__.py
# Tool execution core for the Writer's Toolkit desktop app
# ============================================================================
#
# PACKAGES:
# - base/: configuration and logging setup
# - toolkit/: tool catalog, argument translation, artifact tracking
# - engine/: process supervision, output relay, run events
#
# ============================================================================

__version__ = "1.0.0"
