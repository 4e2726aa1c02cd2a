# ============================================================================
# writers_toolkit/engine/relay.py
# Output Relay - stdout/stderr -> one ordered stream of text chunks
# ============================================================================
#
# Both pipes are drained concurrently. Every chunk is decoded, appended to the
# accumulator for its stream and handed to the output callback immediately.
# stderr chunks are delivered with an "ERROR: " prefix so a consumer that only
# sees the callback can still tell the streams apart; the accumulators keep
# the raw text.
#
# Decoding is incremental, so a multi-byte character split across two reads
# is delivered once, whole.
#
# ============================================================================

from __future__ import annotations

import asyncio
import codecs
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]

ERROR_PREFIX = "ERROR: "
WARNING_PREFIX = "WARNING: "
DEFAULT_CHUNK_SIZE = 4096

# Status lines the relay emits around the tool's own output
RUNNING_PREFIX = "Running command: "
EXIT_CODE_PREFIX = "\nTool finished with exit code: "
DONE_MARKER = "\nDone!"


class QueueSink:
    """
    Output callback that feeds an asyncio.Queue.

    Lets an async consumer iterate a run's output in arrival order:

        sink = QueueSink()
        run_id = await supervisor.start("tool.py", {}, sink)
        text = await sink.queue.get()
    """

    def __init__(self, queue: Optional[asyncio.Queue] = None):
        self.queue: asyncio.Queue = queue if queue is not None else asyncio.Queue()

    def __call__(self, text: str) -> None:
        self.queue.put_nowait(text)

    def drain(self) -> List[str]:
        items: List[str] = []
        while not self.queue.empty():
            items.append(self.queue.get_nowait())
        return items


class OutputRelay:
    """Per-run output fan-in."""

    def __init__(
        self,
        run_id: str,
        on_output: Optional[OutputCallback] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.run_id = run_id
        self.on_output = on_output
        self.chunk_size = chunk_size
        self._stdout: List[str] = []
        self._stderr: List[str] = []

    @property
    def stdout(self) -> str:
        return "".join(self._stdout)

    @property
    def stderr(self) -> str:
        return "".join(self._stderr)

    def emit(self, text: str) -> None:
        """Deliver text to the callback; a failing callback never stops the run."""
        if self.on_output is None:
            return
        try:
            self.on_output(text)
        except Exception as exc:
            logger.warning(f"[relay] Output callback failed for run {self.run_id}: {exc}")

    def warn(self, message: str) -> None:
        logger.warning(f"[relay] run {self.run_id}: {message}")
        self.emit(f"{WARNING_PREFIX}{message}")

    async def pump(
        self,
        stdout: Optional[asyncio.StreamReader],
        stderr: Optional[asyncio.StreamReader],
    ) -> None:
        """Drain both pipes until EOF."""
        await asyncio.gather(
            self._drain(stdout, "stdout"),
            self._drain(stderr, "stderr"),
        )

    async def _drain(self, stream: Optional[asyncio.StreamReader], name: str) -> None:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            try:
                data = await stream.read(self.chunk_size)
            except Exception as exc:
                # Errors after spawn end up in the result, never raised
                self.warn(f"{name} stream error: {exc}")
                await self._discard(stream, name)
                break
            if not data:
                break
            self._deliver(name, decoder.decode(data))
        self._deliver(name, decoder.decode(b"", final=True))

    async def _discard(self, stream: asyncio.StreamReader, name: str) -> None:
        # A child still writing would block on a full pipe
        try:
            while await stream.read(self.chunk_size):
                pass
        except Exception as exc:
            logger.debug(f"[relay] run {self.run_id}: {name} unreadable, giving up: {exc}")

    def _deliver(self, name: str, text: str) -> None:
        if not text:
            return
        if name == "stderr":
            self._stderr.append(text)
            self.emit(f"{ERROR_PREFIX}{text}")
        else:
            self._stdout.append(text)
            self.emit(text)

    def finish(self, exit_code: Optional[int]) -> None:
        """Exit-code report followed by the finished marker; nothing is relayed after."""
        self.emit(f"{EXIT_CODE_PREFIX}{exit_code}")
        self.emit(DONE_MARKER)
