"""
Disc image naming helpers.

Turns a disc image file name into the canonical game title used to group the
discs of one game together:

    'Final Fantasy VII (Disc 1).chd'      -> 'Final Fantasy VII'
    'Game Title [Rev 1].iso'              -> 'Game Title'
    'Chrono Cross (Disc 1) (Track 1).cue' -> 'Chrono Cross'
    'Metal Gear Solid Disc2.cue'          -> 'Metal Gear Solid'

Everything here is pure string work; nothing touches the filesystem.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

# Stripped from the end of a name, in this order, case-sensitively.
DISC_IMAGE_EXTS = (".chd", ".rvz", ".iso", ".cue", ".bin")

# .bin is left out: it always belongs to a .cue and is never a disc of its own.
CANDIDATE_EXTS = (".chd", ".rvz", ".iso", ".cue")

PLAYLIST_EXT = ".m3u"


PARENS = ("(", ")")
SQUARE = ("[", "]")


def _bracketed(keyword: str, brackets: tuple[str, str], follow_ups: bool) -> re.Pattern[str]:
    """Pattern for '(Keyword N ...)' or '[Keyword N ...]' plus surrounding whitespace.

    With ``follow_ups`` any annotations in the same bracket style directly
    after the marker go with it: '(Disc 1) (Track 1)' is removed as a whole.
    """
    o, c = (re.escape(b) for b in brackets)
    marker = rf"\s*{o}{keyword}\s*[0-9]+[^{c}]*{c}"
    if follow_ups:
        marker += rf"(?:\s*{o}[^{c}]*{c})*"
    return re.compile(marker + r"\s*", re.IGNORECASE)


def _bare(keyword: str) -> re.Pattern[str]:
    """Pattern for ' Keyword N' without brackets; needs whitespace in front."""
    return re.compile(rf"\s+{keyword}\s*[0-9]+\s*", re.IGNORECASE)


# Order matters: each substitution runs on the output of the previous one.
# Both disc keywords go through the round brackets before the square ones.
STRIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    _bracketed("disc", PARENS, follow_ups=True),
    _bracketed("disk", PARENS, follow_ups=True),
    _bracketed("disc", SQUARE, follow_ups=True),
    _bracketed("disk", SQUARE, follow_ups=True),
    _bare("disc"),
    _bare("disk"),
    _bracketed("cd", PARENS, follow_ups=True),
    _bracketed("cd", SQUARE, follow_ups=True),
    _bare("cd"),
    _bracketed("rev", PARENS, follow_ups=False),
    _bracketed("rev", SQUARE, follow_ups=False),
    _bracketed("ver", PARENS, follow_ups=False),
    _bracketed("ver", SQUARE, follow_ups=False),
)

TRAILING_DOTS = re.compile(r"\.+$")


def strip_disc_ext(name: str) -> str:
    """Remove trailing disc image extensions (case-sensitive, one pass per extension)."""
    for ext in DISC_IMAGE_EXTS:
        name = name.removesuffix(ext)
    return name


def normalize_title(file_name: str) -> str:
    """Return the canonical game title for a disc image file name.

    Never fails: names without any disc/rev/ver decoration come back with
    just the extension removed. The result can be empty for odd input, which
    is still a usable grouping key.
    """
    title = strip_disc_ext(file_name)
    for pattern in STRIP_PATTERNS:
        title = pattern.sub("", title)
    title = title.rstrip()
    return TRAILING_DOTS.sub("", title)


def playlist_base_name(title: str) -> str:
    """Clean a canonical title for use as the playlist file stem.

    Unlike normalize_title() the extension check here ignores case, so a
    title that still ends in '.ISO' or '.Chd' loses it.
    """
    base = title.rstrip()
    for ext in DISC_IMAGE_EXTS:
        if base.lower().endswith(ext):
            base = base[: -len(ext)]
    return base


def playlist_name(title: str) -> str:
    return playlist_base_name(title) + PLAYLIST_EXT


def is_candidate(name: str) -> bool:
    """True for visible files with a (lowercase) .chd/.rvz/.iso/.cue extension."""
    return not name.startswith(".") and name.endswith(CANDIDATE_EXTS)


def uses_iso_or_cue(name: str) -> bool:
    """True for .iso/.cue files in any letter case (worth converting to .chd)."""
    return name.lower().endswith((".iso", ".cue"))


def is_processed_dir(name: str) -> bool:
    """Directories already renamed after their playlist are left alone."""
    return name.endswith(PLAYLIST_EXT)


@dataclass(frozen=True)
class DiscFile:
    """A disc image found in a game directory."""

    name: str
    parent: Path

    @property
    def ext(self) -> str:
        return Path(self.name).suffix

    @property
    def path(self) -> Path:
        return self.parent / self.name

    @property
    def title(self) -> str:
        return normalize_title(self.name)
