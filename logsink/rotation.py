"""Size-based rotation for the live log file.

Backups form a bounded chain ``app.log.1 … app.log.N`` with the most recent
rotation always at ``.1``. Every decision is re-derived from what exists on
disk, so a chain left half-shifted by an earlier failure heals on the next
rotation.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class BackupShift:
    """One step of a rotation: move ``source`` into ``destination``.

    Attributes:
        source: File to move
        destination: Backup slot it moves into (overwritten if present)
        copy: Copy then delete instead of renaming (used for the live file)
    """

    source: Path
    destination: Path
    copy: bool = False


def backup_path(path: Path, index: int) -> Path:
    """Return the backup slot ``index`` for ``path`` (``app.log`` -> ``app.log.2``)."""
    return path.with_name(f"{path.name}.{index}")


def should_rotate(current_size: int, max_file_size: int) -> bool:
    """Rotation is due once the file reaches the threshold; <= 0 disables it."""
    return max_file_size > 0 and current_size >= max_file_size


def plan_backup_shift(path: Path, backup_count: int) -> list[BackupShift]:
    """Return the renames of one rotation, oldest slot first.

    Args:
        path: Live log file
        backup_count: Number of backups to retain

    Returns:
        Steps to apply in order. The last step moves the live file to ``.1``.

    Raises:
        ValueError: If backup_count is negative
    """
    if backup_count < 0:
        raise ValueError(f"backup_count must be >= 0, got {backup_count}")

    steps: list[BackupShift] = []
    for index in range(backup_count, 0, -1):
        if index == 1:
            steps.append(BackupShift(path, backup_path(path, 1), copy=True))
        else:
            steps.append(BackupShift(backup_path(path, index - 1), backup_path(path, index)))
    return steps


class BackupRotator:
    """Applies the rotation plan for one live file."""

    def __init__(self, path: Path, max_file_size: int, backup_count: int) -> None:
        if backup_count < 0:
            raise ValueError(f"backup_count must be >= 0, got {backup_count}")
        self.path = Path(path)
        self.max_file_size = max_file_size
        self.backup_count = backup_count

    def should_rotate(self, current_size: int) -> bool:
        return should_rotate(current_size, self.max_file_size)

    def rotate(self) -> list[Path]:
        """Shift the backup chain and retire the live file.

        Steps whose source is missing are skipped. A failing step raises and
        leaves the earlier steps in place.

        Returns:
            Backup paths written by this rotation
        """
        written: list[Path] = []
        for step in plan_backup_shift(self.path, self.backup_count):
            if not step.source.exists():
                continue
            if step.copy:
                shutil.copyfile(step.source, step.destination)
                step.source.unlink()
            else:
                os.replace(step.source, step.destination)
            written.append(step.destination)

        # No backups retained: the live file content is discarded
        if self.backup_count == 0:
            self.path.unlink(missing_ok=True)

        return written
