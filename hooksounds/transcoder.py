"""
Transcoder - Convert fetched quote audio to MP3 using FFmpeg.

Quotes come from the wiki as OGG/Vorbis; the sound library ships MP3 at a fixed
bitrate. Conversion runs entirely over pipes, nothing touches disk.
"""

import asyncio
import os
import shutil
from pathlib import Path
from typing import Optional

from hooksounds.errors import TranscodeError
from hooksounds.utils import dbg

SOURCE_FORMAT = "ogg"
TARGET_CODEC = "libmp3lame"
TARGET_BITRATE_KBPS = 192
TRANSCODE_TIMEOUT = 120

_COMMON_FFMPEG_PATHS = (
    # Windows
    r"C:\Program Files\ffmpeg\bin\ffmpeg.exe",
    r"C:\ffmpeg\bin\ffmpeg.exe",
    # macOS (Homebrew)
    "/usr/local/bin/ffmpeg",
    "/opt/homebrew/bin/ffmpeg",
    # Linux
    "/usr/bin/ffmpeg",
)


def find_ffmpeg() -> Optional[str]:
    """Find ffmpeg binary. Returns path or None."""
    configured = os.environ.get("HOOKSOUNDS_FFMPEG", "").strip()
    if configured:
        return configured if Path(configured).exists() else None

    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg:
        return ffmpeg

    for path in _COMMON_FFMPEG_PATHS:
        if Path(path).exists():
            return path
    return None


def is_ffmpeg_available() -> bool:
    """Check if ffmpeg is available."""
    return find_ffmpeg() is not None


def build_command(ffmpeg: str, bitrate: int = TARGET_BITRATE_KBPS) -> list[str]:
    """ffmpeg argv reading OGG on stdin and writing MP3 on stdout."""
    return [
        ffmpeg,
        "-hide_banner",
        "-loglevel",
        "error",
        "-f",
        SOURCE_FORMAT,
        "-i",
        "pipe:0",
        "-vn",  # No video / cover art
        "-acodec",
        TARGET_CODEC,
        "-b:a",
        f"{bitrate}k",
        "-f",
        "mp3",
        "pipe:1",
    ]


async def transcode_to_mp3(
    data: bytes,
    ffmpeg_path: Optional[str] = None,
    bitrate: int = TARGET_BITRATE_KBPS,
    timeout: float = TRANSCODE_TIMEOUT,
) -> bytes:
    """
    Transcode OGG bytes to MP3 bytes.

    Args:
        data: Raw source bytes as fetched.
        ffmpeg_path: Optional path to ffmpeg binary.
        bitrate: Target bitrate in kbps.
        timeout: Seconds before the ffmpeg process is killed.

    Returns:
        MP3 encoded bytes.

    Raises:
        TranscodeError: If the input is empty or malformed, ffmpeg is missing,
            exits non-zero, produces no output, or times out.
    """
    if not data:
        raise TranscodeError("Empty source audio")

    ffmpeg = ffmpeg_path or find_ffmpeg()
    if not ffmpeg:
        raise TranscodeError("ffmpeg not found")

    cmd = build_command(ffmpeg, bitrate)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise TranscodeError(f"Could not start ffmpeg: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(data), timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise TranscodeError(f"ffmpeg timed out after {timeout}s") from e

    if proc.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()[:500]
        raise TranscodeError(f"ffmpeg failed: {detail or f'exit code {proc.returncode}'}")
    if not stdout:
        raise TranscodeError("ffmpeg produced no output")

    dbg(f"Transcoded {len(data)} bytes -> {len(stdout)} bytes mp3")
    return stdout
