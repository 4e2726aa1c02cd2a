"""
Run events for UI collaborators.

ToolService sits between a front end and the ProcessSupervisor and turns a run
into a stream of ToolEvent objects tagged with the run id:

- ``tool-output``: one output chunk (raw stdout, ``ERROR:``-tagged stderr, or a
  synthetic status line)
- ``tool-finished``: the final RunResult
- ``tool-error``: the run could not be started, or its supervision failed
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict, List, Literal, Mapping, Optional, Set, Union

from pydantic import BaseModel

from writers_toolkit.engine.supervisor import ProcessSupervisor, RunResult
from writers_toolkit.errors import ToolkitError, handle_error
from writers_toolkit.toolkit.arguments import OptionValue
from writers_toolkit.toolkit.registry import ToolCatalog

logger = logging.getLogger(__name__)

EventKind = Literal["tool-output", "tool-finished", "tool-error"]


class ToolEvent(BaseModel):
    kind: EventKind
    run_id: Optional[str] = None
    text: Optional[str] = None
    result: Optional[RunResult] = None
    error: Optional[str] = None


EventListener = Callable[[ToolEvent], None]


class _RunOutput:
    """Output callback that tags chunks with a run id once it is known."""

    def __init__(self, publish: EventListener):
        self._publish = publish
        self._pending: List[str] = []
        self.run_id: Optional[str] = None

    def __call__(self, text: str) -> None:
        if self.run_id is None:
            # Emitted before start() returned the id
            self._pending.append(text)
            return
        self._publish(ToolEvent(kind="tool-output", run_id=self.run_id, text=text))

    def bind(self, run_id: str) -> None:
        self.run_id = run_id
        pending, self._pending = self._pending, []
        for text in pending:
            self(text)


class ToolService:
    """
    Args:
        supervisor: Runs the processes
        listener: Receives every ToolEvent
        catalog: When given, schema defaults are applied under caller options
        save_dir: Default for a tool's save_dir option (the current project)
    """

    def __init__(
        self,
        supervisor: ProcessSupervisor,
        listener: EventListener,
        catalog: Optional[ToolCatalog] = None,
        save_dir: Optional[Union[str, Path]] = None,
    ):
        self.supervisor = supervisor
        self.listener = listener
        self.catalog = catalog
        self.save_dir = save_dir
        self._watchers: Set[asyncio.Task] = set()

    def _publish(self, event: ToolEvent) -> None:
        try:
            self.listener(event)
        except Exception as exc:
            logger.warning(f"[service] Listener failed on {event.kind} for run {event.run_id}: {exc}")

    def resolve_options(
        self,
        tool_name: str,
        option_values: Optional[Mapping[str, Optional[OptionValue]]] = None,
    ) -> Dict[str, Optional[OptionValue]]:
        options: Dict[str, Optional[OptionValue]] = {}
        tool = self.catalog.get_tool(tool_name) if self.catalog else None
        if tool is not None:
            options.update(tool.default_option_values(self.save_dir))
        options.update(option_values or {})
        return options

    async def start_tool_run(
        self,
        tool_name: str,
        option_values: Optional[Mapping[str, Optional[OptionValue]]] = None,
    ) -> str:
        """Start a run and return its id; completion arrives as an event."""
        output = _RunOutput(self._publish)
        try:
            run_id = await self.supervisor.start(
                tool_name, self.resolve_options(tool_name, option_values), output
            )
        except ToolkitError as exc:
            self._publish(ToolEvent(kind="tool-error", error=exc.message))
            raise

        output.bind(run_id)
        watcher = asyncio.create_task(self._watch(run_id), name=f"tool-watch-{run_id}")
        self._watchers.add(watcher)
        watcher.add_done_callback(self._watchers.discard)
        return run_id

    def stop_tool(self, run_id: str) -> bool:
        return self.supervisor.stop(run_id)

    async def close(self) -> None:
        await self.supervisor.shutdown("service closed")
        if self._watchers:
            await asyncio.gather(*self._watchers, return_exceptions=True)

    async def _watch(self, run_id: str) -> None:
        try:
            result = await self.supervisor.wait(run_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = handle_error(exc, f"Run {run_id} failed")
            logger.error(f"[service] {error}")
            self._publish(ToolEvent(kind="tool-error", run_id=run_id, error=error.message))
            return
        self._publish(ToolEvent(kind="tool-finished", run_id=run_id, result=result))
