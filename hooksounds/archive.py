"""Streamed ZIP export of an ad hoc quote selection."""

# pylint: disable=broad-exception-caught

import zipfile
from typing import AsyncIterator, List, Sequence

from hooksounds.errors import ValidationError
from hooksounds.library import Fetcher, Transcode
from hooksounds.store_utils.models import ManifestEntry, QuoteEntry
from hooksounds.transcoder import transcode_to_mp3
from hooksounds.utils import echo

COMPRESS_LEVEL = 5


class _ChunkSink:
    """Write-only, non-seekable file object; zipfile falls back to data descriptors."""

    def __init__(self) -> None:
        self._chunks: List[bytes] = []

    def write(self, data: bytes) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        return None

    def drain(self) -> bytes:
        out = b"".join(self._chunks)
        self._chunks.clear()
        return out


def archive_path(quote: QuoteEntry) -> str:
    """
    `<unitName>/<categoryName>/<filename>`, leaving out empty groupings.

    Empty segments are dropped on purpose rather than kept as empty
    directories, so manifest exports group by hook folder only and quotes
    without a unit land at the archive root.
    """
    parts = [part for part in (quote.unit_name, quote.category_name) if part]
    parts.append(quote.filename)
    return "/".join(parts)


def manifest_to_quotes(entries: Sequence[ManifestEntry]) -> List[QuoteEntry]:
    """Group a manifest by hook folder inside the archive."""
    return [
        QuoteEntry(source_url=e.source_url, filename=e.filename, unit_name=e.folder)
        for e in entries
    ]


async def iter_archive(
    client: Fetcher,
    quotes: Sequence[QuoteEntry],
    transcode: Transcode = transcode_to_mp3,
) -> AsyncIterator[bytes]:
    """
    Yield a ZIP archive of the transcoded quotes, one entry at a time.

    Each quote is fetched, transcoded and compressed before the next one is
    touched, so only one entry is ever held in memory. A quote that fails is
    reported and left out; the archive is always finalized.

    Raises:
        ValidationError: If `quotes` is empty.
    """
    if not quotes:
        raise ValidationError("No quotes provided")

    echo(f"[*] Batch download: {len(quotes)} quotes")
    sink = _ChunkSink()
    added = 0
    with zipfile.ZipFile(
        sink, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL
    ) as archive:
        for quote in quotes:
            try:
                raw = await client.fetch(quote.source_url)
                data = await transcode(raw)
            except Exception as error:
                echo(f"[!] Skipping {quote.filename}: {error}")
                continue
            path = archive_path(quote)
            archive.writestr(path, data)
            added += 1
            echo(f"[*] Added: {path}")
            chunk = sink.drain()
            if chunk:
                yield chunk

    tail = sink.drain()
    if tail:
        yield tail
    echo(f"[^] Batch download complete: {added}/{len(quotes)} added")

