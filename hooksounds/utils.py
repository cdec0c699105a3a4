"""This modules contains common utils and environment knobs"""

# pylint: disable=broad-exception-caught

import os
import re
from pathlib import Path
from typing import Optional

from fake_useragent import UserAgent
from tqdm import tqdm

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_SOUNDS_DIR = os.path.join(os.path.expanduser("~"), ".claude", "sounds")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, "") or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, "") or default)
    except ValueError:
        return default


# Debug flag controlled by env var HOOKSOUNDS_DEBUG
DEBUG = os.environ.get("HOOKSOUNDS_DEBUG", "").lower() in {"1", "true", "yes", "on"}
MAX_CONCURRENT_DOWNLOADS = max(1, _env_int("HOOKSOUNDS_CONCURRENCY", 4))
FETCH_TIMEOUT = _env_float("HOOKSOUNDS_FETCH_TIMEOUT", 30.0)
SERVER_HOST = os.environ.get("HOOKSOUNDS_HOST", "").strip() or "127.0.0.1"
SERVER_PORT = _env_int("HOOKSOUNDS_PORT", 3001)


def sounds_dir() -> str:
    """
    Return the sound library root.

    Read on every call so tests and long-running servers pick up
    `HOOKSOUNDS_SOUNDS_DIR` changes.
    """
    env_path = os.environ.get("HOOKSOUNDS_SOUNDS_DIR", "").strip()
    if env_path:
        return os.path.abspath(os.path.expanduser(env_path))
    return DEFAULT_SOUNDS_DIR


def echo(msg: str) -> None:
    """Print a status line without breaking active progress bars."""
    tqdm.write(msg)


def dbg(msg: str) -> None:
    """
    Print a debug message when the DEBUG flag is enabled.

    Args:
        msg (str): Message to print when debug logging is active.

    Returns:
        None
    """
    if DEBUG:
        tqdm.write(f"[debug] {msg}")


def get_random_user_agent() -> str:
    """
    Return a random user agent string; fallback to a generic UA if generator fails.
    """
    try:
        return UserAgent().random
    except Exception:
        return "Mozilla/5.0"


async def create_download_folder(base_path: str, *args: str) -> str:
    """
    Create a folder at the specified base path (async-friendly wrapper).

    Args:
        base_path (str): Base path where the folder should be created.
        *args (str): Optional subfolder components to nest under base_path.

    Returns:
        str: The path to the created (or existing) folder.
    """
    path = os.path.join(base_path, *args) if args else base_path
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)
        echo(f"[*] Created directory: {path}")
    return path


def choices(prompt: str) -> bool:
    """
    Prompt the user with a yes/no question.

    Args:
        prompt (str): The message to display to the user.

    Returns:
        bool: True if the user enters 'y', False for 'n' or empty input.
    """
    i = input(prompt).strip().lower()
    return i in ("y", "yes")


def sanitize(name: Optional[str], replacement: str = "_") -> str:
    """
    Replace characters that are invalid in file or folder names.

    Args:
        name (Optional[str]): The input string to sanitize.
        replacement (str): Substitute for each invalid character. Pass "" to strip.

    Returns:
        str: A sanitized string safe to use as filename or folder name.
    """
    return re.sub(r'[\\/*?:"<>|]', replacement, name) if name else ""

