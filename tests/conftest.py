"""Pytest configuration for the Writer's Toolkit execution core."""
import logging
import os
import sys
import textwrap

import pytest

from writers_toolkit.base.config import set_config
from writers_toolkit.engine.supervisor import ProcessSupervisor
from writers_toolkit.toolkit.arguments import ArgumentTranslator

# Prepended to tools that need their tracking file path
TRACKING_PRELUDE = """\
import sys

def tracking_path():
    args = sys.argv[1:]
    return args[args.index("--output_tracking") + 1]

"""


def pytest_configure():
    os.environ.setdefault("WRITERS_TOOLKIT_LOG_LEVEL", "DEBUG")


@pytest.fixture(autouse=True)
def _reset_config():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    set_config(None)
    # setup_logging() replaces root handlers; put pytest's back
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def tools_dir(tmp_path):
    path = tmp_path / "tools"
    path.mkdir()
    return path


@pytest.fixture
def tracking_dir(tmp_path):
    path = tmp_path / "tracking"
    path.mkdir()
    return path


@pytest.fixture
def write_tool(tools_dir):
    """Write a Python tool script into the tools dir."""
    def _write(name, body, tracking=False):
        path = tools_dir / name
        source = textwrap.dedent(body)
        if tracking:
            source = TRACKING_PRELUDE + source
        path.write_text(source, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def translator(tools_dir):
    return ArgumentTranslator(
        tools_dir,
        interpreters={".py": (sys.executable,), ".js": ("node",)},
    )


@pytest.fixture
def supervisor(translator, tracking_dir):
    return ProcessSupervisor(translator, tracking_dir=tracking_dir)
