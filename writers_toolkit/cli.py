"""
Writer's Toolkit CLI - run catalog tools from a terminal.

Usage examples:
    writers-toolkit tools
    writers-toolkit run word_count.py -o input_file=chapter1.txt -o verbose=true
    python -m writers_toolkit.cli run outline.py --tools-dir ./tools
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from writers_toolkit.base.config import get_config, setup_logging
from writers_toolkit.engine.relay import (
    DONE_MARKER,
    ERROR_PREFIX,
    EXIT_CODE_PREFIX,
    RUNNING_PREFIX,
    WARNING_PREFIX,
)
from writers_toolkit.engine.supervisor import ProcessSupervisor
from writers_toolkit.errors import ToolkitError
from writers_toolkit.toolkit.arguments import OptionValue
from writers_toolkit.toolkit.registry import ToolCatalog


def parse_option_value(raw: str) -> OptionValue:
    """Interpret command-line text the way the option form would."""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def parse_options(pairs: List[str]) -> Dict[str, OptionValue]:
    options: Dict[str, OptionValue] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"Expected name=value, got {pair!r}")
        options[name] = parse_option_value(value)
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="writers-toolkit", description="Writer's Toolkit tool runner")
    parser.add_argument("--tools-dir", help="Directory containing tool scripts")
    parser.add_argument("--catalog", help="Path to the tool catalog JSON")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("tools", help="List tools in the catalog")

    run = sub.add_parser("run", help="Run a tool and stream its output")
    run.add_argument("tool", help="Tool file name, e.g. word_count.py")
    run.add_argument("-o", "--option", action="append", default=[], metavar="NAME=VALUE",
                     help="Option value (repeatable)")
    run.add_argument("--cwd", help="Working directory for the tool")
    return parser


class ConsoleSink:
    """
    Output callback for a terminal.

    Tool output is written exactly as received, stderr chunks to stderr. Status
    lines from the relay and the CLI's own messages start on a fresh line and
    end with a newline.
    """

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self._at_line_start = {id(self.out): True, id(self.err): True}

    def __call__(self, text: str) -> None:
        if text.startswith((RUNNING_PREFIX, WARNING_PREFIX, EXIT_CODE_PREFIX, DONE_MARKER)):
            self.line(text.lstrip("\n"))
        elif text.startswith(ERROR_PREFIX):
            self._write(self.err, text[len(ERROR_PREFIX):])
        else:
            self._write(self.out, text)

    def line(self, text: str, error: bool = False) -> None:
        stream = self.err if error else self.out
        if not self._at_line_start[id(stream)]:
            text = "\n" + text
        if not text.endswith("\n"):
            text += "\n"
        self._write(stream, text)

    def _write(self, stream: TextIO, text: str) -> None:
        if not text:
            return
        stream.write(text)
        stream.flush()
        self._at_line_start[id(stream)] = text.endswith("\n")


async def _run(args: argparse.Namespace, catalog: ToolCatalog, overrides: Dict[str, OptionValue]) -> int:
    config = get_config()
    supervisor = ProcessSupervisor.from_config(config, cwd=args.cwd)
    console = ConsoleSink()

    options: Dict[str, Optional[OptionValue]] = {}
    tool = catalog.get_tool(args.tool)
    if tool is not None:
        options.update(tool.default_option_values(config.projects.save_dir))
    options.update(overrides)

    try:
        result = await supervisor.run_tool(args.tool, options, console)
    except ToolkitError as exc:
        console.line(str(exc), error=True)
        return 2
    finally:
        await supervisor.shutdown("cli exit")

    if result.created_files:
        console.line("Created files:")
        for path in result.created_files:
            console.line(f"  {path}")
    # Killed by a signal shows up as a negative code
    return result.code if result.code is not None and result.code >= 0 else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    if args.log_level:
        config.log = replace(config.log, level=args.log_level)
    if args.tools_dir:
        config.tools = replace(config.tools, tools_dir=Path(args.tools_dir))
    setup_logging(config)

    try:
        catalog = ToolCatalog.load(args.catalog or config.tools.catalog_path)
    except ToolkitError as exc:
        print(exc, file=sys.stderr)
        return 2

    if args.command == "tools":
        for tool in catalog.list_tools():
            print(f"{tool.name:32} {tool.display_title} - {tool.description}")
        return 0

    try:
        overrides = parse_options(args.option)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    return asyncio.run(_run(args, catalog, overrides))


if __name__ == "__main__":
    sys.exit(main())
