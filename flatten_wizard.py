#!/usr/bin/env python3
"""
flatten wizard: pull lone files out of their own little folders.

For every immediate subdirectory of the working directory that holds exactly
one visible file (no hidden files, no subfolders), move the file up one level
and remove the emptied folder.

Safety:
- Never overwrites: a same-named entry in the working directory skips the folder.
- A failed move deletes nothing.
- A folder is only removed after it has been checked to be empty.

Usage:
    python flatten_wizard.py
    python flatten_wizard.py --path ~/roms/gba --dry-run
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from rich import box
from rich.markup import escape
from rich.table import Table

from wizard_common import (
    VERSION,
    apply_overrides,
    console,
    debug,
    error,
    interrupted,
    load_config,
    log,
    start_run,
    warn,
)

TOOL = "flatten_wizard"


@dataclass(frozen=True)
class SubdirCounts:
    visible_files: int
    hidden_files: int
    subdirs: int

    @property
    def collapsible(self) -> bool:
        return self.visible_files == 1 and self.hidden_files == 0 and self.subdirs == 0


@dataclass
class CollapseSummary:
    root: Path
    dry_run: bool = False
    moved: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # Names a dry run has already moved up; they count as taken in root.
    claimed: set[str] = field(default_factory=set)


def count_entries(subdir: Path) -> SubdirCounts:
    """Count depth-1 regular files (visible/hidden) and directories; symlinks count as neither."""
    visible = hidden = dirs = 0
    for entry in subdir.iterdir():
        if entry.is_symlink():
            continue
        if entry.is_dir():
            dirs += 1
        elif entry.is_file():
            if entry.name.startswith("."):
                hidden += 1
            else:
                visible += 1
    return SubdirCounts(visible_files=visible, hidden_files=hidden, subdirs=dirs)


def single_file(subdir: Path) -> Path:
    return next(
        p
        for p in subdir.iterdir()
        if not p.is_symlink() and p.is_file() and not p.name.startswith(".")
    )


def collapse_subdir(subdir: Path, root: Path, summary: CollapseSummary) -> str:
    """Move the only file of ``subdir`` into ``root`` and remove ``subdir``.

    Returns a status string: 'not-collapsible', 'conflict', 'would-move',
    'moved', 'not-empty', 'rmdir-failed' or 'error'.
    """
    counts = count_entries(subdir)
    debug(
        f"{subdir.name}: {counts.visible_files} visible file(s), "
        f"{counts.hidden_files} hidden file(s), {counts.subdirs} subdirectory(ies)"
    )
    if not counts.collapsible:
        return "not-collapsible"

    src = single_file(subdir)
    dst = root / src.name

    if dst.exists() or dst.is_symlink() or src.name in summary.claimed:
        warn(f"File {src.name!r} already exists in {root}, skipping subdirectory {subdir.name!r}")
        summary.conflicts.append(f"{src.name} (in {subdir.name})")
        return "conflict"

    if summary.dry_run:
        log(f"[DRY-RUN]  Would move {src} -> {root}/ and remove {subdir.name!r}")
        summary.claimed.add(src.name)
        summary.moved.append(subdir.name)
        return "would-move"

    log(f"Moving {src} -> {root}/")
    try:
        src.rename(dst)
    except OSError as e:
        error(f"Failed to move {src}: {e}; skipping directory removal")
        summary.errors.append(f"{src.name} (in {subdir.name}): {e}")
        return "error"

    remaining = sum(1 for _ in subdir.iterdir())
    if remaining:
        msg = (
            f"Directory {subdir.name!r} is not empty after moving file "
            f"(contains {remaining} item(s)), skipping removal"
        )
        warn(msg)
        summary.warnings.append(msg)
        return "not-empty"

    log(f"Removing empty subdirectory {subdir.name!r}")
    try:
        subdir.rmdir()
    except OSError as e:
        msg = f"Failed to remove directory {subdir.name!r}: {e}"
        warn(msg)
        summary.warnings.append(msg)
        return "rmdir-failed"

    summary.moved.append(subdir.name)
    return "moved"


def run(root: Path, dry_run: bool = False) -> CollapseSummary:
    """Collapse every eligible subdirectory of ``root``.

    Listing ``root`` itself may raise OSError; that is fatal for the run.
    Errors inside one subdirectory are recorded and the run moves on.
    """
    summary = CollapseSummary(root=root, dry_run=dry_run)
    subdirs = sorted(
        (p for p in root.iterdir() if p.is_dir() and not p.is_symlink()),
        key=lambda p: p.name,
    )
    for subdir in subdirs:
        try:
            collapse_subdir(subdir, root, summary)
        except OSError as e:
            error(f"Failed to inspect {subdir}: {e}")
            summary.errors.append(f"{subdir.name}: {e}")
    return summary


def render_summary(summary: CollapseSummary) -> None:
    log("\n=== Summary ===")
    if not summary.moved:
        log("No subdirectories with a single file were processed.")
    else:
        verb = "Would process" if summary.dry_run else "Successfully processed"
        table = Table(
            title=f"{verb} {len(summary.moved)} subdirectory(ies)", box=box.SIMPLE, show_header=False
        )
        table.add_column("Directory", style="path")
        for name in summary.moved:
            table.add_row(escape(name))
        console.print(table)
        for name in summary.moved:
            debug(f"Collapsed: {name}")

    if summary.conflicts:
        log("\nFiles skipped due to naming conflicts (existing file in working directory):")
        for item in summary.conflicts:
            log(f"  - {item}")
        log(f"Total skipped: {len(summary.conflicts)} file(s)")
    else:
        log("No files were skipped due to naming conflicts.")

    for item in summary.errors:
        error(item)
    log(f"Mode: {'DRY-RUN' if summary.dry_run else 'LIVE'}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Move lone files out of single-file subfolders and remove the folders."
    )
    ap.add_argument(
        "--path",
        "-p",
        type=Path,
        default=Path("."),
        help="Directory to flatten (default: current directory)",
    )
    ap.add_argument("--config", "-c", type=Path, help="Path to config.yaml")
    ap.add_argument("--dry-run", "-n", action="store_true", help="Preview only, change nothing")
    ap.add_argument("--verbose", "-v", action="store_true", help="Show per-folder debug output")
    ap.add_argument("--no-log-file", action="store_true", help="Do not write a log file")
    ap.add_argument("--version", action="version", version=f"%(prog)s v{VERSION}")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        cfg = apply_overrides(load_config(args.config), args.dry_run, args.verbose)
    except (OSError, ValueError, yaml.YAMLError) as e:
        error(f"Could not load config: {e}")
        return 1

    start_run(TOOL, "Flatten Wizard", cfg, use_log_file=not args.no_log_file)

    root = args.path.resolve()
    try:
        summary = run(root, dry_run=cfg.dry_run)
    except OSError as e:
        error(f"Cannot list subdirectories of {root}: {e}")
        return 1
    except KeyboardInterrupt:
        return interrupted()

    render_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
