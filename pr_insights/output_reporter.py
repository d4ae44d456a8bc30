"""Lists the files an analysis session left in its output directory."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


def list_output_files(directory: Path) -> List[Tuple[str, float]]:
    """Return `(name, size in KiB)` for the regular files directly inside `directory`."""

    directory = Path(directory)
    if not directory.is_dir():
        return []
    entries = []
    for item in sorted(directory.iterdir(), key=lambda path: path.name):
        if item.is_file():
            entries.append((item.name, item.stat().st_size / 1024))
    return entries


def report_output_files(directory: Path) -> None:
    entries = list_output_files(directory)
    if not entries:
        return
    print("Generated files:")
    for name, size_kib in entries:
        print(f"  📄 {name} ({size_kib:.2f} KB)")
