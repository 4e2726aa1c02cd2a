# ============================================================================
# writers_toolkit/engine/supervisor.py
# Process Supervisor - owns every running tool process
# ============================================================================
#
# LIFECYCLE OF A RUN:
#   start()      -> translate options, spawn, register under a fresh run id
#   (task)       -> relay stdout/stderr, reap, unregister, resolve artifacts
#   wait()       -> collect the RunResult (kept for result_ttl seconds after exit)
#   stop()       -> SIGTERM + unregister, returns without waiting for death
#
# All bookkeeping happens on the event loop that called start(), so the live
# registry needs no lock. stop() and the exit path both use dict.pop(.., None)
# and therefore agree on "registered or not" without double-removal errors.
#
# Only runs that never spawned raise. A tool that ran and failed is a normal
# outcome reported through RunResult.code and RunResult.stderr.
#
# ============================================================================

from __future__ import annotations

import asyncio
import logging
import sys
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from writers_toolkit.base.config import ToolkitConfig, get_config
from writers_toolkit.engine.relay import (
    DEFAULT_CHUNK_SIZE,
    ERROR_PREFIX,
    RUNNING_PREFIX,
    OutputCallback,
    OutputRelay,
)
from writers_toolkit.errors import RunNotFoundError, SpawnFailureError, ToolkitError
from writers_toolkit.toolkit.arguments import ArgumentTranslator, CommandLine, OptionValue
from writers_toolkit.toolkit.tracking import ArtifactTracker

logger = logging.getLogger(__name__)

# Grace period between SIGTERM and SIGKILL during shutdown
SHUTDOWN_GRACE_SECONDS = 0.2

# How long an uncollected result stays available to wait()
DEFAULT_RESULT_TTL_SECONDS = 300.0


class RunResult(BaseModel):
    run_id: str
    tool_name: str
    stdout: str = ""
    stderr: str = ""
    created_files: List[str] = Field(default_factory=list)
    code: Optional[int] = None
    stopped: bool = False
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        """True when the tool exited non-zero or was stopped."""
        return self.stopped or self.code != 0

    def to_payload(self) -> Dict[str, Any]:
        """The shape UI collaborators expect; a signal-killed run has code None."""
        code = self.code if self.code is not None and self.code >= 0 else None
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "createdFiles": list(self.created_files),
            "code": code,
        }


@dataclass
class ToolRun:
    """One tool invocation, from spawn until its process is reaped."""

    run_id: str
    tool_name: str
    command: CommandLine
    tracking_file: Path
    process: asyncio.subprocess.Process
    relay: OutputRelay
    started_at: float = field(default_factory=time.monotonic)
    stopped: bool = False


class ProcessSupervisor:
    """
    Starts, stops and reaps tool processes.

    Construct one per application and pass it to whatever needs to run tools.

    Args:
        translator: Builds command lines from tool names and options
        tracker: Resolves tracking files after exit
        tracking_dir: Where per-run tracking files are placed
        cwd: Working directory for tool processes (None inherits ours)
        chunk_size: Max bytes read from a pipe at a time
        result_ttl: Seconds a finished, uncollected result is kept for wait()
    """

    def __init__(
        self,
        translator: ArgumentTranslator,
        tracker: Optional[ArtifactTracker] = None,
        tracking_dir: Optional[Union[str, Path]] = None,
        cwd: Optional[Union[str, Path]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        result_ttl: float = DEFAULT_RESULT_TTL_SECONDS,
    ):
        self.translator = translator
        self.tracker = tracker or ArtifactTracker()
        self.tracking_dir = Path(tracking_dir) if tracking_dir else get_config().tools.tracking_dir
        self.cwd = Path(cwd) if cwd else None
        self.chunk_size = chunk_size
        self.result_ttl = result_ttl

        # Live registry: run id -> run, only while the process is ours
        self._procs: Dict[str, ToolRun] = {}
        # Pending results: run id -> supervising task, until collected or expired
        self._completions: Dict[str, asyncio.Task] = {}
        self._expiry: Dict[str, asyncio.TimerHandle] = {}

    @classmethod
    def from_config(cls, config: Optional[ToolkitConfig] = None, cwd: Optional[Union[str, Path]] = None) -> "ProcessSupervisor":
        cfg = config or get_config()
        translator = ArgumentTranslator(
            tools_dir=cfg.tools.tools_dir,
            interpreters={
                ".js": (cfg.tools.node_binary,),
                ".py": (sys.executable,),
            },
            tracking_flag=cfg.tools.tracking_flag,
        )
        return cls(
            translator=translator,
            tracker=ArtifactTracker(cleanup=not cfg.tools.keep_tracking_files),
            tracking_dir=cfg.tools.tracking_dir,
            cwd=cwd,
            chunk_size=cfg.tools.read_chunk_size,
            result_ttl=cfg.tools.result_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def running_ids(self) -> List[str]:
        return list(self._procs)

    def is_running(self, run_id: str) -> bool:
        return run_id in self._procs

    @property
    def pending_results(self) -> List[str]:
        """Run ids whose result wait() can still collect."""
        return list(self._completions)

    async def start(
        self,
        tool_name: str,
        option_values: Optional[Mapping[str, Optional[OptionValue]]] = None,
        on_output: Optional[OutputCallback] = None,
    ) -> str:
        """
        Spawn a tool and return its run id without waiting for it to finish.

        Raises:
            UnsupportedToolTypeError: tool extension has no interpreter
            ToolNotFoundError: tool script missing
            SpawnFailureError: the OS could not create the process
        """
        run_id = str(uuid.uuid4())
        relay = OutputRelay(run_id, on_output, chunk_size=self.chunk_size)
        tracking_file = self.tracking_dir / f"{run_id}.txt"

        try:
            command = self.translator.translate(tool_name, option_values or {}, tracking_file)
        except ToolkitError as exc:
            logger.warning(f"[supervisor] Refusing to start {tool_name}: {exc}")
            relay.emit(f"{ERROR_PREFIX}{exc.message}")
            raise

        relay.emit(f"{RUNNING_PREFIX}{command.display()}")
        try:
            process = await asyncio.create_subprocess_exec(
                command.executable,
                *command.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd) if self.cwd else None,
            )
        except (OSError, ValueError) as exc:
            # ValueError: argv the OS cannot take, e.g. an embedded NUL
            message = f"Failed to start {tool_name}: {exc}"
            logger.error(f"[supervisor] {message}")
            relay.emit(f"{ERROR_PREFIX}{message}")
            raise SpawnFailureError(
                message,
                details={"tool": tool_name, "argv": command.argv},
            ) from exc

        # Registered before the relay task gets a chance to run
        run = ToolRun(
            run_id=run_id,
            tool_name=tool_name,
            command=command,
            tracking_file=tracking_file,
            process=process,
            relay=relay,
        )
        self._procs[run_id] = run
        completion = asyncio.create_task(self._supervise(run), name=f"tool-run-{run_id}")
        completion.add_done_callback(lambda task: self._schedule_expiry(run_id, task))
        self._completions[run_id] = completion
        logger.info(f"[supervisor] Started {tool_name} as run {run_id} (pid {process.pid})")
        return run_id

    async def wait(self, run_id: str) -> RunResult:
        """
        Wait for a run to finish and collect its result.

        Each run's result can be collected once. A run whose process ignores
        termination never completes; bound the wait externally if needed.
        """
        task = self._completions.get(run_id)
        if task is None:
            raise RunNotFoundError(
                f"No pending result for run {run_id}",
                details={"run_id": run_id},
            )
        try:
            return await task
        finally:
            if task.done():
                self._forget(run_id)

    async def run_tool(
        self,
        tool_name: str,
        option_values: Optional[Mapping[str, Optional[OptionValue]]] = None,
        on_output: Optional[OutputCallback] = None,
    ) -> RunResult:
        """start() + wait()."""
        run_id = await self.start(tool_name, option_values, on_output)
        return await self.wait(run_id)

    def stop(self, run_id: str) -> bool:
        """
        Send SIGTERM to a live run and unregister it.

        Returns False for unknown or already finished runs. Does not wait for
        the process to die; its completion still fires once it is reaped.
        """
        run = self._procs.pop(run_id, None)
        if run is None:
            return False

        run.stopped = True
        try:
            run.process.terminate()
        except ProcessLookupError:
            # Exited but not reaped yet
            pass
        logger.info(f"[supervisor] Stop requested for run {run_id} ({run.tool_name})")
        return True

    async def shutdown(self, reason: str = "shutdown") -> None:
        """Terminate every live run, force-kill stragglers, reap them."""
        runs = list(self._procs.values())
        if runs:
            logger.info(f"[supervisor] Terminating {len(runs)} run(s) ({reason})")

        for run in runs:
            self.stop(run.run_id)

        if runs:
            await asyncio.sleep(SHUTDOWN_GRACE_SECONDS)

        for run in runs:
            if run.process.returncode is None:
                try:
                    run.process.kill()
                except ProcessLookupError:
                    pass
                except Exception as exc:
                    logger.debug(f"[supervisor] kill failed for {run.tool_name} ({reason}): {exc}")

        pending = list(self._completions.values())
        for run_id in list(self._completions):
            self._forget(run_id)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _supervise(self, run: ToolRun) -> RunResult:
        try:
            await run.relay.pump(run.process.stdout, run.process.stderr)
            exit_code = await run.process.wait()
        finally:
            # May already be gone if stop() got there first
            self._procs.pop(run.run_id, None)

        duration = time.monotonic() - run.started_at
        logger.info(
            f"[supervisor] Run {run.run_id} ({run.tool_name}) exited with {exit_code} "
            f"after {duration:.2f}s{' (stopped)' if run.stopped else ''}"
        )

        created_files = self.tracker.resolve(
            run.tracking_file,
            on_warning=run.relay.emit,
            base_dir=self.cwd,
        )
        run.relay.finish(exit_code)

        return RunResult(
            run_id=run.run_id,
            tool_name=run.tool_name,
            stdout=run.relay.stdout,
            stderr=run.relay.stderr,
            created_files=created_files,
            code=exit_code,
            stopped=run.stopped,
            duration_seconds=duration,
        )

    def _schedule_expiry(self, run_id: str, task: asyncio.Task) -> None:
        if self._completions.get(run_id) is not task:
            # Collected, or dropped by shutdown()
            return
        if self.result_ttl <= 0:
            self._expire(run_id, task)
            return
        self._expiry[run_id] = task.get_loop().call_later(self.result_ttl, self._expire, run_id, task)

    def _expire(self, run_id: str, task: asyncio.Task) -> None:
        if self._completions.get(run_id) is not task:
            return
        self._forget(run_id)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"[supervisor] Uncollected run {run_id} had failed: {task.exception()}")
        else:
            logger.debug(f"[supervisor] Dropped uncollected result of run {run_id}")

    def _forget(self, run_id: str) -> None:
        self._completions.pop(run_id, None)
        handle = self._expiry.pop(run_id, None)
        if handle is not None:
            handle.cancel()
