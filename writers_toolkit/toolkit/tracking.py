# ============================================================================
# writers_toolkit/toolkit/tracking.py
# Artifact discovery through per-run tracking files
# ============================================================================
#
# PROTOCOL:
# Each run is handed a fresh path via --output_tracking. A tool that writes
# files appends one path per line to it. After the process exits we read the
# list back and keep the entries that actually exist.
#
# The file is optional: most tools never create it, and that is not an error.
# A file that exists but cannot be read degrades to an empty list plus a
# warning in the run's output.
#
# ============================================================================

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Union

from writers_toolkit.errors import TrackingFileUnreadableError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_tracking_file(path: PathLike) -> List[str]:
    """Return the non-blank, stripped lines of a tracking file."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TrackingFileUnreadableError(
            f"Error reading output files list: {exc}",
            details={"path": str(path)},
        ) from exc
    return [line.strip() for line in content.splitlines() if line.strip()]


class ArtifactTracker:
    """
    Resolves a run's tracking file into the list of files it created.

    Args:
        cleanup: Delete the tracking file once it has been read
    """

    def __init__(self, cleanup: bool = True):
        self.cleanup = cleanup

    def resolve(
        self,
        tracking_file: PathLike,
        on_warning: Optional[Callable[[str], None]] = None,
        base_dir: Optional[PathLike] = None,
    ) -> List[str]:
        """
        Args:
            tracking_file: Path handed to the tool for this run
            on_warning: Receives a human-readable warning if the file is unreadable
            base_dir: Directory relative entries are resolved against (the tool's cwd)

        Returns:
            Absolute paths that exist right now, in the order the tool wrote them
        """
        path = Path(tracking_file)
        if not path.exists():
            return []

        try:
            entries = read_tracking_file(path)
        except TrackingFileUnreadableError as exc:
            logger.warning(f"[tracker] {exc}")
            if on_warning:
                on_warning(f"WARNING: {exc.message}")
            return []
        finally:
            self._discard(path)

        base = os.path.abspath(base_dir) if base_dir is not None else os.getcwd()
        created: List[str] = []
        for entry in entries:
            candidate = os.path.abspath(os.path.join(base, entry))
            if os.path.exists(candidate):
                created.append(candidate)
            else:
                logger.debug(f"[tracker] Ignoring missing artifact {candidate}")

        logger.debug(f"[tracker] {path.name}: {len(created)}/{len(entries)} artifacts exist")
        return created

    def _discard(self, path: Path) -> None:
        if not self.cleanup:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.debug(f"[tracker] Could not remove {path}: {exc}")
