from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from logsink.rotation import BackupRotator, backup_path, plan_backup_shift, should_rotate


def test_should_rotate_threshold() -> None:
    """Rotation is due at the threshold, not before it."""
    assert not should_rotate(99, 100)
    assert should_rotate(100, 100)
    assert should_rotate(150, 100)


def test_should_rotate_disabled() -> None:
    """A non-positive max size disables rotation."""
    assert not should_rotate(10_000, 0)
    assert not should_rotate(10_000, -1)


def test_backup_path_naming(tmp_path: Path) -> None:
    assert backup_path(tmp_path / "app.log", 3) == tmp_path / "app.log.3"


def test_plan_backup_shift_order(tmp_path: Path) -> None:
    """Oldest slot moves first; the live file is copied into .1 last."""
    path = tmp_path / "app.log"

    steps = plan_backup_shift(path, 3)

    assert [(s.source.name, s.destination.name, s.copy) for s in steps] == [
        ("app.log.2", "app.log.3", False),
        ("app.log.1", "app.log.2", False),
        ("app.log", "app.log.1", True),
    ]


def test_plan_backup_shift_zero_and_negative(tmp_path: Path) -> None:
    assert plan_backup_shift(tmp_path / "app.log", 0) == []
    with pytest.raises(ValueError, match="backup_count"):
        plan_backup_shift(tmp_path / "app.log", -1)


def test_rotate_moves_live_file(tmp_path: Path) -> None:
    path = tmp_path / "app.log"
    path.write_text("first\n")

    rotator = BackupRotator(path, max_file_size=10, backup_count=2)
    written = rotator.rotate()

    assert written == [backup_path(path, 1)]
    assert not path.exists()
    assert backup_path(path, 1).read_text() == "first\n"


def test_rotate_keeps_bounded_chain(tmp_path: Path) -> None:
    """After more rotations than backups, only .1 .. .N exist, newest at .1."""
    path = tmp_path / "app.log"
    rotator = BackupRotator(path, max_file_size=1, backup_count=2)

    for generation in range(4):
        path.write_text(f"gen{generation}\n")
        rotator.rotate()

    assert backup_path(path, 1).read_text() == "gen3\n"
    assert backup_path(path, 2).read_text() == "gen2\n"
    assert not backup_path(path, 3).exists()


def test_rotate_without_backups_discards_live_file(tmp_path: Path) -> None:
    path = tmp_path / "app.log"
    path.write_text("gone\n")

    written = BackupRotator(path, max_file_size=1, backup_count=0).rotate()

    assert written == []
    assert not path.exists()
    assert not backup_path(path, 1).exists()


def test_rotate_skips_missing_slots(tmp_path: Path) -> None:
    """Gaps in the chain are re-derived from disk, not assumed."""
    path = tmp_path / "app.log"
    path.write_text("live\n")
    backup_path(path, 2).write_text("older\n")

    BackupRotator(path, max_file_size=1, backup_count=3).rotate()

    assert backup_path(path, 1).read_text() == "live\n"
    assert not backup_path(path, 2).exists()
    assert backup_path(path, 3).read_text() == "older\n"


def test_partial_rotation_failure_heals_on_next_rotation(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "app.log"
    path.write_text("new\n")
    backup_path(path, 1).write_text("old\n")
    rotator = BackupRotator(path, max_file_size=1, backup_count=2)

    def failing_copy(src: Path, dst: Path) -> None:
        raise OSError("copy failed")

    monkeypatch.setattr(shutil, "copyfile", failing_copy)
    with pytest.raises(OSError, match="copy failed"):
        rotator.rotate()
    monkeypatch.undo()

    # .1 already moved to .2; the live file stayed put
    assert backup_path(path, 2).read_text() == "old\n"
    assert not backup_path(path, 1).exists()
    assert path.read_text() == "new\n"

    rotator.rotate()

    assert backup_path(path, 1).read_text() == "new\n"
    assert backup_path(path, 2).read_text() == "old\n"
    assert not path.exists()
