"""Tool catalog: metadata and option schema for the tools a user can run."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from writers_toolkit.errors import CatalogError, ErrorCode

logger = logging.getLogger(__name__)

OptionDefault = Union[bool, int, float, str, None]

# Option through which tools are told where to write their output
SAVE_DIR_OPTION = "save_dir"


class ToolOption(BaseModel):
    name: str
    label: Optional[str] = None
    type: str = "text"  # text, number, boolean, file, directory, select
    default: OptionDefault = None
    required: bool = False
    description: str = ""
    choices: List[str] = Field(default_factory=list)


class ToolDefinition(BaseModel):
    name: str
    title: Optional[str] = None
    description: str = "No description available"
    options: List[ToolOption] = Field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title or self.name

    @property
    def hidden(self) -> bool:
        return self.name.startswith("_")

    def default_option_values(self, save_dir: Optional[Union[str, Path]] = None) -> Dict[str, OptionDefault]:
        """
        Option mapping pre-filled from schema defaults, in schema order.

        A declared save_dir option without its own default gets save_dir.
        """
        values: Dict[str, OptionDefault] = {}
        for opt in self.options:
            if opt.default is not None:
                values[opt.name] = opt.default
            elif opt.name == SAVE_DIR_OPTION and save_dir is not None:
                values[opt.name] = str(save_dir)
        return values


class ToolCatalog:
    """
    In-memory tool catalog backed by a JSON document.

    The document keeps tools under a "tools" key, either as a mapping of
    id -> tool (the settings-store layout) or as a plain list.
    """

    def __init__(self, tools: Optional[List[ToolDefinition]] = None):
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self._tools[tool.name] = tool

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ToolCatalog":
        path = Path(path)
        if not path.exists():
            logger.info(f"[catalog] No catalog at {path}; starting empty")
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(
                f"Cannot read tool catalog {path}: {exc}",
                details={"path": str(path)},
            ) from exc

        raw = data.get("tools", {}) if isinstance(data, dict) else data
        entries: List[Any] = list(raw.values()) if isinstance(raw, dict) else list(raw or [])

        tools: List[ToolDefinition] = []
        for entry in entries:
            try:
                tools.append(ToolDefinition.model_validate(entry))
            except ValidationError as exc:
                raise CatalogError(
                    f"Invalid tool entry in {path}: {exc.errors()[0]['msg']}",
                    details={"path": str(path), "entry": entry},
                ) from exc

        logger.debug(f"[catalog] Loaded {len(tools)} tools from {path}")
        return cls(tools)

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        payload = {
            "tools": {
                str(idx): tool.model_dump(exclude_none=True)
                for idx, tool in enumerate(self._tools.values(), start=1)
            }
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise CatalogError(
                f"Cannot write tool catalog {path}: {exc}",
                details={"path": str(path)},
                code=ErrorCode.CATALOG_WRITE_FAILED,
            ) from exc

    def list_tools(self) -> List[ToolDefinition]:
        """Visible tools; names starting with an underscore are internal."""
        return [tool for tool in self._tools.values() if not tool.hidden]

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def add_or_update(self, tool: ToolDefinition) -> None:
        self._tools[tool.name] = tool

    def remove(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
