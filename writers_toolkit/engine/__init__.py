# ============================================================================
# writers_toolkit/engine/__init__.py
# ============================================================================
#
# PURPOSE:
# Runs tools as child processes and reports back what happened.
#
# MODULES IN THIS PACKAGE:
# - **supervisor.py**: Spawns, registers, stops and reaps tool runs
# - **relay.py**: Streams stdout/stderr chunks to an output callback
# - **service.py**: Publishes run events (output / finished / error)
#
# WORKFLOW:
# start() -> translate options -> spawn -> relay output -> exit -> resolve artifacts -> RunResult
#
# ============================================================================

from writers_toolkit.engine.relay import OutputCallback, OutputRelay, QueueSink
from writers_toolkit.engine.supervisor import ProcessSupervisor, RunResult, ToolRun

__all__ = [
    "OutputCallback",
    "OutputRelay",
    "ProcessSupervisor",
    "QueueSink",
    "RunResult",
    "ToolRun",
]
