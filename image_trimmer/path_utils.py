"""Path normalization utilities.

- Use absolute paths when interacting with the filesystem/UI.
- Dialog start directories fall back to the user's Desktop, then home.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from pathlib import Path

_DRIVE_PREFIX_LEN = 2


def _normalize_drive_letter(path_str: str) -> str:
    # Normalize drive letter casing on Windows ("c:\\" -> "C:\\").
    if len(path_str) >= _DRIVE_PREFIX_LEN and path_str[1] == ":":
        return path_str[0].upper() + path_str[1:]
    return path_str


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        # strict=False avoids exceptions for non-existent paths.
        return p.resolve(strict=False)
    except OSError:
        return p.absolute()


def abs_path_str(path: str | Path) -> str:
    """Absolute, OS-native path string (Windows uses backslashes)."""
    return _normalize_drive_letter(str(abs_path(path)))


def abs_dir(path: str | Path) -> Path:
    """Absolute directory path.

    If the path exists and is not a directory, returns its parent.
    """
    p = abs_path(path)
    try:
        if p.exists() and not p.is_dir():
            return p.parent
    except OSError:
        pass
    return p


def abs_dir_str(path: str | Path) -> str:
    return _normalize_drive_letter(str(abs_dir(path)))


def default_start_dir() -> str:
    """Desktop when present, otherwise the home directory."""
    home = Path.home()
    desktop = home / "Desktop"
    return abs_dir_str(desktop if desktop.is_dir() else home)


def start_dir_for(candidate: str | Path | None) -> str:
    """Existing directory for a dialog to open in: `candidate` (or its parent) if usable, else the default."""
    if candidate:
        d = abs_dir(candidate)
        if d.is_dir():
            return _normalize_drive_letter(str(d))
    return default_start_dir()
