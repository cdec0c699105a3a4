"""CLI banner utilities."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Sequence

VERSION_PATH = Path(__file__).resolve().parent.parent / "VERSION"

_SPEAKER_ASCII = (
    "            ++",
    "          ++++    +",
    "        ++++++     +",
    "  ++++++++++++  +   +",
    "  ++++++++++++   +  +",
    "  ++++++++++++   +  +",
    "  ++++++++++++  +   +",
    "        ++++++     +",
    "          ++++    +",
    "            ++",
)

_TITLE_ASCII = (
    " _   _  ___   ___  _  __  ____   ___  _   _ _   _ ____  ____  ",
    "| | | |/ _ \\ / _ \\| |/ / / ___| / _ \\| | | | \\ | |  _ \\/ ___| ",
    "| |_| | | | | | | | ' /  \\___ \\| | | | | | |  \\| | | | \\___ \\ ",
    "|  _  | |_| | |_| | . \\   ___) | |_| | |_| | |\\  | |_| |___) |",
    "|_| |_|\\___/ \\___/|_|\\_\\ |____/ \\___/ \\___/|_| \\_|____/|____/ ",
)

MENU_ITEMS = (
    "[1] Sync active list to sound library",
    "[2] Show lists",
    "[3] Create list",
    "[4] Switch active list",
    "[5] Import setup file",
    "[6] Export active list as ZIP",
    "[7] Start web server",
    "[8] Exit",
)


def _pad_lines(lines: tuple[str, ...], target_height: int) -> list[str]:
    out = list(lines)
    out.extend([""] * max(0, target_height - len(out)))
    return out


def _read_cli_version() -> str:
    """
    Read CLI version from VERSION file.

    `v0.3.0` renders as `v0.3.0-<md5[:7]>`; a trailing `-HASH` placeholder is
    replaced by the digest; any other suffix is kept as-is.
    """
    try:
        raw_bytes = VERSION_PATH.read_bytes()
        raw_text = raw_bytes.decode("utf-8", errors="replace").strip()
    except OSError:
        return "unknown"

    if not raw_text:
        return "unknown"

    digest7 = hashlib.md5(raw_bytes).hexdigest()[:7]  # nosec B324
    if raw_text.endswith("-HASH"):
        return f"{raw_text[:-4]}{digest7}"
    if "-" in raw_text:
        return raw_text
    return f"{raw_text}-{digest7}"


def render_banner(
    separator: str = " | ",
    extra_right_lines: Sequence[str] | None = None,
) -> str:
    """Render banner as `speaker icon | title`."""
    right_block = list(_TITLE_ASCII)
    if extra_right_lines:
        right_block.extend(str(line) for line in extra_right_lines)

    height = max(len(_SPEAKER_ASCII), len(right_block))
    left = _pad_lines(_SPEAKER_ASCII, height)
    right = _pad_lines(tuple(right_block), height)
    left_width = max(len(line) for line in left)

    return "\n".join(
        f"{left_line.ljust(left_width)}{separator}{right_line}"
        for left_line, right_line in zip(left, right)
    )


def render_main_menu_banner(separator: str = " | ") -> str:
    """Banner with the version and main menu on the right-hand side."""
    title_width = max(len(line) for line in _TITLE_ASCII)
    menu_lines = (
        _read_cli_version().rjust(title_width),
        "",
        "Main menu:",
        *MENU_ITEMS,
        "",
    )
    return render_banner(separator=separator, extra_right_lines=menu_lines)
