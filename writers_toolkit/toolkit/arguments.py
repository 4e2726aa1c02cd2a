"""
Translate a tool name plus option values into a command line.

A tool is a script under the tools directory. Its file extension picks the
interpreter, and its argument vector is built by an ArgumentStrategy. Most tools
use the default strategy; tools with a bespoke CLI shape register their own.

Default rules, applied per option in insertion order (first match wins):

1. ``--name``: booleans become a bare flag when true, anything else becomes
   ``--name value``.
2. ``input_file``: the value is appended as a bare positional argument.
3. ``output_file``: ``--output_file value``.
4. anything else: ``--name value``.

Arguments are always passed to the OS as a vector, never through a shell.
"""
from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from writers_toolkit.errors import ToolNotFoundError, UnsupportedToolTypeError

logger = logging.getLogger(__name__)

OptionValue = Union[bool, int, float, str]

FLAG_PREFIX = "--"
PRIMARY_INPUT_KEY = "input_file"
PRIMARY_OUTPUT_KEY = "output_file"
DEFAULT_TRACKING_FLAG = "--output_tracking"


def stringify(value: OptionValue) -> str:
    """Canonical CLI text for an option value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_flag(name: str) -> str:
    return name if name.startswith(FLAG_PREFIX) else f"{FLAG_PREFIX}{name}"


@dataclass(frozen=True)
class CommandLine:
    """Executable plus argument vector, ready for create_subprocess_exec."""

    executable: str
    args: Tuple[str, ...]

    @property
    def argv(self) -> List[str]:
        return [self.executable, *self.args]

    def display(self) -> str:
        return shlex.join(self.argv)


class ArgumentStrategy:
    """Default argument shape. Subclass and register for tools that differ."""

    # Extra flags for the interpreter, placed before the script path
    interpreter_flags: Tuple[str, ...] = ()

    def build(self, options: Mapping[str, Optional[OptionValue]]) -> List[str]:
        args: List[str] = []
        for name, value in options.items():
            args.extend(self.format_option(name, value))
        return args

    def format_option(self, name: str, value: Optional[OptionValue]) -> List[str]:
        # Unset form fields arrive as None
        if value is None:
            return []

        # Booleans are presence flags whatever the name looks like
        if isinstance(value, bool):
            return [as_flag(name)] if value else []

        if name.startswith(FLAG_PREFIX):
            return [name, stringify(value)]
        if name == PRIMARY_INPUT_KEY:
            return [stringify(value)]
        if name == PRIMARY_OUTPUT_KEY:
            return [as_flag(name), stringify(value)]
        return [as_flag(name), stringify(value)]


class TokensCounterStrategy(ArgumentStrategy):
    """
    tokens_words_counter.js reads its input from --text_file, takes an
    optional --verbose switch, and prints a punycode deprecation warning on
    recent Node versions unless told not to.
    """

    interpreter_flags = ("--no-deprecation",)

    INPUT_KEYS = (PRIMARY_INPUT_KEY, "text_file", "--text_file")
    VERBOSE_KEYS = ("verbose", "--verbose")

    def format_option(self, name: str, value: Optional[OptionValue]) -> List[str]:
        if value is None:
            return []
        if name in self.INPUT_KEYS:
            return ["--text_file", stringify(value)]
        if name in self.VERBOSE_KEYS:
            return ["--verbose"] if value is True or value == "true" else []
        return super().format_option(name, value)


DEFAULT_STRATEGIES: Dict[str, ArgumentStrategy] = {
    "tokens_words_counter.js": TokensCounterStrategy(),
}


class ArgumentTranslator:
    """
    Resolves tool names to scripts and builds their command lines.

    Args:
        tools_dir: Directory the tool scripts live in
        interpreters: File extension -> interpreter command (e.g. {".js": ("node",)})
        tracking_flag: Flag used to hand each run its tracking file path
        strategies: Per-tool overrides, merged over DEFAULT_STRATEGIES
    """

    def __init__(
        self,
        tools_dir: Union[str, Path],
        interpreters: Mapping[str, Sequence[str]],
        tracking_flag: str = DEFAULT_TRACKING_FLAG,
        strategies: Optional[Mapping[str, ArgumentStrategy]] = None,
    ):
        self.tools_dir = Path(tools_dir).resolve()
        self.interpreters: Dict[str, Tuple[str, ...]] = {
            ext.lower(): tuple(cmd) for ext, cmd in interpreters.items()
        }
        self.tracking_flag = tracking_flag
        self.default_strategy = ArgumentStrategy()
        self._strategies: Dict[str, ArgumentStrategy] = dict(DEFAULT_STRATEGIES)
        if strategies:
            self._strategies.update(strategies)

    def register(self, tool_name: str, strategy: ArgumentStrategy) -> None:
        self._strategies[tool_name] = strategy

    def strategy_for(self, tool_name: str) -> ArgumentStrategy:
        return self._strategies.get(tool_name, self.default_strategy)

    def interpreter_for(self, tool_name: str) -> Tuple[str, ...]:
        ext = Path(tool_name).suffix.lower()
        interpreter = self.interpreters.get(ext)
        if not interpreter:
            supported = ", ".join(sorted(self.interpreters)) or "none"
            raise UnsupportedToolTypeError(
                f"Unsupported tool type: {tool_name} (supported: {supported})",
                details={"tool": tool_name, "extension": ext},
            )
        return interpreter

    def resolve_tool_path(self, tool_name: str) -> Path:
        tool_path = (self.tools_dir / tool_name).resolve()
        # A name like "../x.js" must not escape the tools directory
        if not tool_path.is_relative_to(self.tools_dir) or not tool_path.is_file():
            raise ToolNotFoundError(
                f"Cannot find tool at path: {tool_path}",
                details={"tool": tool_name, "path": str(tool_path)},
            )
        return tool_path

    def translate(
        self,
        tool_name: str,
        option_values: Mapping[str, Optional[OptionValue]],
        tracking_file: Union[str, Path],
    ) -> CommandLine:
        """
        Build the command line for one run.

        The tracking flag is always injected last (or replaces a caller-supplied
        value in place), so every run can report the files it wrote.

        Raises:
            UnsupportedToolTypeError: no interpreter for the tool's extension
            ToolNotFoundError: the script does not exist under tools_dir
        """
        interpreter = self.interpreter_for(tool_name)
        tool_path = self.resolve_tool_path(tool_name)
        strategy = self.strategy_for(tool_name)

        options: Dict[str, Optional[OptionValue]] = dict(option_values)
        options[self.tracking_flag] = str(tracking_file)

        executable, *interpreter_args = interpreter
        args = [*interpreter_args, *strategy.interpreter_flags, str(tool_path), *strategy.build(options)]

        logger.debug(f"[translator] {tool_name} -> {len(args)} args via {type(strategy).__name__}")
        return CommandLine(executable=executable, args=tuple(args))
