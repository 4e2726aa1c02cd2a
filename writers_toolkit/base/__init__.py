# ============================================================================
# writers_toolkit/base/__init__.py
# ============================================================================
#
# PURPOSE:
# Foundational pieces everything else reads: configuration sections,
# environment loading and logging setup (config.py).
#
# ============================================================================
