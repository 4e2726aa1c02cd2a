"""Unit tests for tracking file resolution."""
import os

from writers_toolkit.toolkit.tracking import ArtifactTracker, read_tracking_file


def test_absent_tracking_file_yields_nothing(tmp_path):
    warnings = []
    assert ArtifactTracker().resolve(tmp_path / "never-written.txt", warnings.append) == []
    assert warnings == []


def test_keeps_existing_paths_in_written_order(tmp_path):
    first = tmp_path / "b_summary.txt"
    second = tmp_path / "a_outline.txt"
    first.write_text("x")
    second.write_text("y")
    tracking = tmp_path / "run.txt"
    tracking.write_text(f"{first}\n{tmp_path / 'ghost.txt'}\n{second}\n")

    created = ArtifactTracker().resolve(tracking)

    assert created == [str(first), str(second)]


def test_blank_lines_and_padding_are_ignored(tmp_path):
    report = tmp_path / "report.txt"
    report.write_text("r")
    tracking = tmp_path / "run.txt"
    tracking.write_text(f"\n   {report}   \n\n\t\n")

    assert ArtifactTracker().resolve(tracking) == [str(report)]


def test_relative_entries_resolve_against_base_dir(tmp_path):
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "count.txt").write_text("1")
    tracking = tmp_path / "run.txt"
    tracking.write_text("out/count.txt\n")

    created = ArtifactTracker().resolve(tracking, base_dir=tmp_path)

    assert created == [os.path.join(str(tmp_path), "out", "count.txt")]


def test_unreadable_file_warns_and_degrades(tmp_path):
    tracking = tmp_path / "run.txt"
    tracking.write_bytes(b"\xff\xfe\xfa not utf-8")
    warnings = []

    created = ArtifactTracker().resolve(tracking, warnings.append)

    assert created == []
    assert len(warnings) == 1
    assert warnings[0].startswith("WARNING: Error reading output files list")


def test_tracking_file_removed_after_resolution(tmp_path):
    tracking = tmp_path / "run.txt"
    tracking.write_text("")
    ArtifactTracker().resolve(tracking)
    assert not tracking.exists()


def test_cleanup_can_be_disabled(tmp_path):
    tracking = tmp_path / "run.txt"
    tracking.write_text("")
    ArtifactTracker(cleanup=False).resolve(tracking)
    assert tracking.exists()


def test_read_tracking_file_strips_lines(tmp_path):
    tracking = tmp_path / "run.txt"
    tracking.write_text(" a \r\nb\n\n")
    assert read_tracking_file(tracking) == ["a", "b"]
