#!/usr/bin/env python3
"""
m3u wizard: turn multi-disc game folders into .m3u playlist entries.

Flow:
- Look at every immediate subdirectory of the working directory.
- Skip folders already named '<Game>.m3u' (processed on an earlier run).
- Collect the .chd/.rvz/.iso/.cue images (never .bin, those hang off a .cue).
- Group them by canonical game title ('Game (Disc 1).chd' -> 'Game').
- Write '<Game>.m3u' listing the discs of the first multi-disc game.
- If the folder only holds that one game, rename it to '<Game>.m3u' so the
  front-end shows it as a single entry.

Usage:
    python m3u_wizard.py                 # process the current directory
    python m3u_wizard.py --path ~/roms/psx
    python m3u_wizard.py --dry-run       # preview only
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from disc_names import (
    DiscFile,
    is_candidate,
    is_processed_dir,
    playlist_name,
    uses_iso_or_cue,
)
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

TOOL = "m3u_wizard"

SKIP_ALREADY_CREATED = "playlist already created for this directory"
SKIP_SINGLE_DISC = "only one disc found"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class EmitResult:
    """What emit_playlist() did (or would do) for one directory."""

    playlist_name: str | None = None
    renamed: bool = False
    uses_iso_or_cue: bool = False
    members: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    target: Path | None = None
    status: str = "no-multi-disc"
    message: str = ""


@dataclass
class DirResult:
    """Outcome for one subdirectory.

    status is one of: 'empty', 'single-disc', 'no-multi-disc', 'created',
    'renamed', 'would-create', 'would-rename', 'rename-conflict', 'error'.
    """

    directory: Path
    status: str
    emit: EmitResult | None = None
    message: str = ""


@dataclass
class RunSummary:
    root: Path
    dry_run: bool = False
    already_processed: list[str] = field(default_factory=list)
    results: list[DirResult] = field(default_factory=list)

    @property
    def processed_games(self) -> list[str]:
        return [
            r.emit.playlist_name.removesuffix(".m3u")
            for r in self.results
            if r.emit is not None and r.emit.playlist_name
        ]

    @property
    def iso_cue_games(self) -> list[str]:
        return [
            r.emit.playlist_name.removesuffix(".m3u")
            for r in self.results
            if r.emit is not None and r.emit.playlist_name and r.emit.uses_iso_or_cue
        ]

    @property
    def failures(self) -> list[DirResult]:
        return [r for r in self.results if r.status in ("error", "rename-conflict")]


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def scan_candidates(directory: Path) -> list[DiscFile]:
    """Return the disc images in ``directory`` that can take part in a playlist."""
    files = [
        DiscFile(name=entry.name, parent=directory)
        for entry in directory.iterdir()
        if entry.is_file() and is_candidate(entry.name)
    ]
    return sorted(files, key=lambda f: f.name)


def group_discs(files: list[DiscFile]) -> dict[str, list[DiscFile]]:
    """Bucket disc images by canonical title.

    Titles come out in sorted order and each bucket is sorted by file name,
    so the result only depends on the names involved.
    """
    groups: dict[str, list[DiscFile]] = {}
    for disc in files:
        title = disc.title
        debug(f"Processing file: {disc.name!r} (Base name: {title!r})")
        groups.setdefault(title, []).append(disc)
    return {title: sorted(groups[title], key=lambda f: f.name) for title in sorted(groups)}


# ---------------------------------------------------------------------------
# Playlist writing
# ---------------------------------------------------------------------------


def write_playlist(path: Path, members: list[str]) -> None:
    """Write one file name per line, replacing any previous playlist."""
    path.write_text("".join(f"{name}\n" for name in members), encoding="utf-8")


def emit_playlist(
    directory: Path, groups: dict[str, list[DiscFile]], dry_run: bool = False
) -> EmitResult:
    """Create at most one playlist for ``directory`` and rename it when unambiguous.

    Only the first multi-disc game gets a playlist; later ones are reported
    as skipped. The directory is renamed only when every disc in it belongs
    to that one game.

    OSError from writing the playlist propagates to the caller. A failed
    rename is reported in the result (status 'error') because the playlist
    already exists by then.
    """
    result = EmitResult()

    for title, discs in groups.items():
        debug(f"Game: {title!r}, Number of Discs: {len(discs)}")

        if len(discs) < 2:
            log(f"Skipping {title} - {SKIP_SINGLE_DISC}.", style="dim")
            result.skipped.append((title, SKIP_SINGLE_DISC))
            continue

        if result.playlist_name is not None:
            log(f"Skipping {title} - {SKIP_ALREADY_CREATED}.", style="dim")
            result.skipped.append((title, SKIP_ALREADY_CREATED))
            continue

        name = playlist_name(title)
        members = [d.name for d in discs]
        result.playlist_name = name
        result.members = members
        result.uses_iso_or_cue = any(uses_iso_or_cue(d.name) for d in discs)

        if dry_run:
            result.status = "would-create"
            log(f"[DRY-RUN]  Would create {name} with {len(members)} discs")
        else:
            write_playlist(directory / name, members)
            result.status = "created"
            log(f"[CREATED]  {name} with the following discs:", style="ok")
        for member in members:
            log(f"             {member}")

    if result.playlist_name is None or len(groups) != 1:
        return result
    if directory.name == result.playlist_name:
        return result

    target = directory.with_name(result.playlist_name)
    result.target = target
    if target.exists() or target.is_symlink():
        result.status = "rename-conflict"
        warn(f"[CLASH]    Cannot rename {directory.name!r}: {target} already exists")
        return result

    if dry_run:
        result.status = "would-rename"
        log(f"[DRY-RUN]  Would rename {directory.name!r} -> {target.name!r}")
        return result

    # The playlist is already on disk here, so a failed rename still counts it.
    try:
        directory.rename(target)
    except OSError as e:
        error(f"Failed to rename {directory.name!r} -> {target.name!r}: {e}")
        result.status = "error"
        result.message = str(e)
        return result
    result.renamed = True
    result.status = "renamed"
    log(f"[RENAMED]  {directory.name!r} -> {target.name!r}", style="ok")
    return result


# ---------------------------------------------------------------------------
# Main processing
# ---------------------------------------------------------------------------


def process_directory(directory: Path, dry_run: bool = False) -> DirResult:
    """Scan -> group -> emit for one game directory; filesystem errors are captured."""
    log(f"\n--- Processing {directory.name} ---", style="info")

    try:
        files = scan_candidates(directory)
        if not files:
            log(f"No .chd, .rvz, .iso, or .cue files found in {directory.name}.", style="dim")
            return DirResult(directory, "empty")
        if len(files) == 1:
            log(
                f"Only one .chd, .rvz, .iso, or .cue file found in {directory.name} "
                "- skipping (single disc game).",
                style="dim",
            )
            return DirResult(directory, "single-disc")

        groups = group_discs(files)
        emit = emit_playlist(directory, groups, dry_run=dry_run)
    except OSError as e:
        error(f"Failed to process {directory}: {e}")
        return DirResult(directory, "error", message=str(e))

    message = emit.message
    if emit.status == "rename-conflict" and emit.target is not None:
        message = f"{emit.target.name} already exists"
    return DirResult(directory, emit.status, emit=emit, message=message)


def list_subdirs(root: Path) -> list[Path]:
    """Immediate real subdirectories of ``root``, sorted by name.

    OSError (missing or unreadable root) is left to the caller: it is fatal.
    """
    return sorted(
        (p for p in root.iterdir() if p.is_dir() and not p.is_symlink()),
        key=lambda p: p.name,
    )


def run(root: Path, dry_run: bool = False) -> RunSummary:
    summary = RunSummary(root=root, dry_run=dry_run)
    for directory in list_subdirs(root):
        if is_processed_dir(directory.name):
            log(
                f"Skipping {directory.name!r} - directory already ends in .m3u "
                "(already processed).",
                style="dim",
            )
            summary.already_processed.append(directory.name)
            continue
        summary.results.append(process_directory(directory, dry_run=dry_run))
    return summary


def render_summary(summary: RunSummary) -> None:
    log("\n========== Summary ==========")
    log(f"Directories skipped (already processed): {len(summary.already_processed)}")

    games = summary.processed_games
    if not games:
        log("No games were processed (no multi-disc games found).")
    else:
        verb = "would create" if summary.dry_run else "created"
        table = Table(title=f"Processed games ({verb} .m3u files)", box=box.SIMPLE)
        table.add_column("Game", style="path")
        table.add_column("Discs", justify="right")
        table.add_column("Directory")
        for r in summary.results:
            if r.emit is None or not r.emit.playlist_name:
                continue
            table.add_row(
                escape(r.emit.playlist_name.removesuffix(".m3u")),
                str(len(r.emit.members)),
                escape(r.status),
            )
        console.print(table)
        for game in games:
            debug(f"Processed: {game}")

    iso_cue = summary.iso_cue_games
    if iso_cue:
        body = "\n".join(f"  - {escape(g)}" for g in iso_cue)
        console.print(
            Panel(
                f"{body}\n\nRecommendation: Consider compressing these games to .chd format\n"
                "for better space efficiency and performance.",
                title="⚠ The following games use .iso or .cue format",
                border_style="yellow",
                box=box.ROUNDED,
            )
        )
        for game in iso_cue:
            warn(f"Uses .iso/.cue format: {game}")

    for r in summary.failures:
        warn(f"{r.directory.name}: {r.status} ({r.message})")

    if not summary.results:
        log(
            "\nNo unprocessed subdirectories found (all directories already end in .m3u "
            "or no subdirectories exist)."
        )
    log(f"Mode: {'DRY-RUN' if summary.dry_run else 'LIVE'}")
    log("=============================")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Create .m3u playlists for multi-disc games, one folder per game."
    )
    ap.add_argument(
        "--path",
        "-p",
        type=Path,
        default=Path("."),
        help="Directory whose subfolders hold the games (default: current directory)",
    )
    ap.add_argument("--config", "-c", type=Path, help="Path to config.yaml")
    ap.add_argument("--dry-run", "-n", action="store_true", help="Preview only, change nothing")
    ap.add_argument("--verbose", "-v", action="store_true", help="Show per-file debug output")
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

    start_run(TOOL, "m3u Wizard", cfg, use_log_file=not args.no_log_file)

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
