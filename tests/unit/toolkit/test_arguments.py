"""Unit tests for option -> command line translation."""
import sys

import pytest

from writers_toolkit.errors import ToolNotFoundError, UnsupportedToolTypeError
from writers_toolkit.toolkit.arguments import (
    ArgumentStrategy,
    ArgumentTranslator,
    CommandLine,
    TokensCounterStrategy,
    stringify,
)


@pytest.fixture
def outline_tool(write_tool):
    return write_tool("outline.py", "print('ok')\n")


class TestDefaultRules:
    def test_same_input_gives_same_argv(self, translator, outline_tool, tmp_path):
        options = {"input_file": "ch1.txt", "lang": "en", "--verbose": True, "max": 3}
        first = translator.translate("outline.py", options, tmp_path / "t.txt")
        second = translator.translate("outline.py", dict(options), tmp_path / "t.txt")
        assert first == second

    def test_insertion_order_is_kept(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"b": "2", "a": "1"}, tmp_path / "t.txt")
        assert cmd.args[1:5] == ("--b", "2", "--a", "1")

    def test_false_boolean_contributes_nothing(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"--dry_run": False, "skip": False}, tmp_path / "t.txt")
        assert "--dry_run" not in cmd.args
        assert "--skip" not in cmd.args
        assert "false" not in cmd.args

    def test_true_boolean_contributes_one_token(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"--dry_run": True}, tmp_path / "t.txt")
        assert cmd.args.count("--dry_run") == 1
        idx = cmd.args.index("--dry_run")
        assert cmd.args[idx + 1] == "--output_tracking"

    def test_primary_input_is_positional(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"input_file": "/w/ch1.txt"}, tmp_path / "t.txt")
        assert cmd.args[1] == "/w/ch1.txt"
        assert "--input_file" not in cmd.args

    def test_primary_output_is_flagged(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"output_file": "out.txt"}, tmp_path / "t.txt")
        assert cmd.args[1:3] == ("--output_file", "out.txt")

    def test_dashed_name_with_value(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"--save_dir": "/w"}, tmp_path / "t.txt")
        assert cmd.args[1:3] == ("--save_dir", "/w")

    def test_none_values_are_skipped(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {"lang": None}, tmp_path / "t.txt")
        assert "--lang" not in cmd.args

    def test_numbers_use_canonical_text(self):
        assert stringify(2.0) == "2"
        assert stringify(1.5) == "1.5"
        assert stringify(200000) == "200000"
        assert stringify(True) == "true"

    def test_executable_and_script_path(self, translator, outline_tool, tmp_path):
        cmd = translator.translate("outline.py", {}, tmp_path / "t.txt")
        assert cmd.executable == sys.executable
        assert cmd.args[0] == str(outline_tool.resolve())


class TestTrackingInjection:
    def test_tracking_flag_always_added(self, translator, outline_tool, tmp_path):
        tracking = tmp_path / "run.txt"
        cmd = translator.translate("outline.py", {"lang": "en"}, tracking)
        assert cmd.args[-2:] == ("--output_tracking", str(tracking))

    def test_caller_value_is_replaced(self, translator, outline_tool, tmp_path):
        tracking = tmp_path / "run.txt"
        cmd = translator.translate(
            "outline.py", {"--output_tracking": "/elsewhere.txt", "lang": "en"}, tracking
        )
        assert cmd.args.count("--output_tracking") == 1
        assert "/elsewhere.txt" not in cmd.args
        assert cmd.args[1:3] == ("--output_tracking", str(tracking))


class TestResolution:
    def test_missing_tool(self, translator, tmp_path):
        with pytest.raises(ToolNotFoundError) as exc_info:
            translator.translate("missing.py", {}, tmp_path / "t.txt")
        assert "Cannot find tool at path" in exc_info.value.message

    def test_name_cannot_escape_tools_dir(self, translator, tools_dir, tmp_path):
        (tmp_path / "outside.py").write_text("print('no')\n")
        with pytest.raises(ToolNotFoundError):
            translator.translate("../outside.py", {}, tmp_path / "t.txt")

    def test_unsupported_extension(self, translator, tools_dir, tmp_path):
        (tools_dir / "notes.txt").write_text("hello")
        with pytest.raises(UnsupportedToolTypeError):
            translator.translate("notes.txt", {}, tmp_path / "t.txt")

    def test_extension_checked_before_existence(self, translator, tmp_path):
        with pytest.raises(UnsupportedToolTypeError):
            translator.translate("missing.rb", {}, tmp_path / "t.txt")


class TestStrategies:
    def test_tokens_counter_shape(self, tools_dir, tmp_path):
        script = tools_dir / "tokens_words_counter.js"
        script.write_text("// counter\n")
        translator = ArgumentTranslator(tools_dir, {".js": ("node",)})
        tracking = tmp_path / "t.txt"

        cmd = translator.translate(
            "tokens_words_counter.js", {"input_file": "ch1.txt", "verbose": True}, tracking
        )

        assert cmd.argv == [
            "node", "--no-deprecation", str(script.resolve()),
            "--text_file", "ch1.txt", "--verbose",
            "--output_tracking", str(tracking),
        ]

    def test_tokens_counter_verbose_off(self, tools_dir, tmp_path):
        (tools_dir / "tokens_words_counter.js").write_text("// counter\n")
        translator = ArgumentTranslator(tools_dir, {".js": ("node",)})
        cmd = translator.translate(
            "tokens_words_counter.js", {"text_file": "a.txt", "verbose": False}, tmp_path / "t.txt"
        )
        assert "--verbose" not in cmd.args
        assert isinstance(translator.strategy_for("tokens_words_counter.js"), TokensCounterStrategy)

    def test_registered_override(self, translator, outline_tool, tmp_path):
        class Reversed(ArgumentStrategy):
            def build(self, options):
                return list(reversed(super().build(options)))

        translator.register("outline.py", Reversed())
        cmd = translator.translate("outline.py", {"lang": "en"}, tmp_path / "t.txt")
        assert cmd.args[1] == str(tmp_path / "t.txt")

    def test_unregistered_tools_use_default(self, translator):
        assert translator.strategy_for("anything.py") is translator.default_strategy


def test_command_line_display_quotes_arguments():
    cmd = CommandLine("node", ("tool.js", "--title", "My Novel"))
    assert cmd.display() == "node tool.js --title 'My Novel'"
