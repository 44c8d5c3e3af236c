"""
Shared plumbing for the disc wizards: config.yaml loading, Rich console and
file logging.

Both wizards print through the same themed console and mirror every line into
a timestamped log file, so a run can be reviewed after the terminal is gone.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, cast

import yaml
from rich.console import Console
from rich.theme import Theme

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# CONFIG DEFAULTS
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "disc-wizards" / "config.yaml"
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "disc-wizards"
DEFAULT_DRY_RUN = False

THEME = Theme(
    {
        "title": "bold cyan",
        "info": "bright_cyan",
        "ok": "bold green",
        "warn": "bold yellow",
        "err": "bold red",
        "dim": "dim",
        "path": "bright_white",
    }
)
console = Console(theme=THEME, highlight=False)

# Global verbose flag (set by --verbose or config)
VERBOSE = False


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def _coerce_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, int | float):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "ture", "yes", "y", "1", "on", "enabled"):
            return True
        if s in ("false", "no", "n", "0", "off", "disabled"):
            return False
    return default


def _expand_path(p: str) -> str:
    """Expand ~ and $VARS and return a normalized path string (doesn't require existence)."""
    p = (p or "").strip()
    if not p:
        return p
    p = os.path.expandvars(p)
    return str(Path(p).expanduser())


@dataclass(frozen=True)
class LoggingCfg:
    enabled: bool
    dir: str


@dataclass(frozen=True)
class AppCfg:
    dry_run: bool
    verbose: bool
    logging: LoggingCfg


def default_config() -> AppCfg:
    return AppCfg(
        dry_run=DEFAULT_DRY_RUN,
        verbose=False,
        logging=LoggingCfg(enabled=True, dir=str(DEFAULT_LOG_DIR)),
    )


def load_config(path: Path | None) -> AppCfg:
    """Load config.yaml into an AppCfg.

    ``None`` means "no --config given": the user-level default file is read
    if it exists, otherwise built-in defaults are returned. An explicit path
    that does not exist raises FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return default_config()
        path = DEFAULT_CONFIG_PATH

    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        raw: dict[str, Any] = {}
    elif not isinstance(loaded, dict):
        raise ValueError("config.yaml root must be a mapping")
    else:
        raw = cast(dict[str, Any], loaded)

    logging_node: dict[str, Any] = cast(dict[str, Any], raw.get("logging") or {})
    log_dir = _expand_path(str(logging_node.get("dir") or DEFAULT_LOG_DIR))

    return AppCfg(
        dry_run=_coerce_bool(raw.get("dry_run", DEFAULT_DRY_RUN), DEFAULT_DRY_RUN),
        verbose=_coerce_bool(raw.get("verbose", False), False),
        logging=LoggingCfg(
            enabled=_coerce_bool(logging_node.get("enabled", True), True),
            dir=log_dir,
        ),
    )


def apply_overrides(cfg: AppCfg, dry_run: bool, verbose: bool) -> AppCfg:
    """CLI flags can only switch dry-run/verbose on, never off."""
    return AppCfg(
        dry_run=cfg.dry_run or dry_run,
        verbose=cfg.verbose or verbose,
        logging=cfg.logging,
    )


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(tool: str, log_dir: Path = DEFAULT_LOG_DIR) -> Path | None:
    """Set up file logging in addition to console output.

    Returns the log file path if successful, None otherwise.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{tool}_{timestamp}.log"

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(message)s",
            handlers=[
                logging.FileHandler(log_file, encoding="utf-8"),
            ],
        )
        return log_file
    except OSError:
        return None


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------


def log(msg: str, style: str | None = None) -> None:
    console.print(msg, style=style, markup=False)
    logging.info(msg)


def warn(msg: str) -> None:
    console.print(f"[WARN] {msg}", style="warn", markup=False)
    logging.warning(msg)


def error(msg: str) -> None:
    console.print(f"[ERROR] {msg}", style="err", markup=False)
    logging.error(msg)


def debug(msg: str) -> None:
    """Print debug message if verbose mode is enabled; always goes to the log file."""
    if VERBOSE:
        console.print(f"[DEBUG] {msg}", style="dim", markup=False)
    logging.debug(msg)


def start_run(tool: str, title: str, cfg: AppCfg, use_log_file: bool) -> Path | None:
    """Common startup for both wizards: verbose flag, log file and banner."""
    global VERBOSE
    VERBOSE = cfg.verbose

    log_file = None
    if use_log_file and cfg.logging.enabled:
        log_file = setup_logging(tool, Path(cfg.logging.dir))

    console.rule(f"[title]{title}[/]")
    if log_file:
        log(f"📝 Logging to: {log_file}")
    if cfg.dry_run:
        log("🧪 DRY-RUN: nothing will be changed.", style="info")
    return log_file


def interrupted() -> int:
    print("\n⏹  Interrupted by user.", file=sys.stderr)
    return 130
