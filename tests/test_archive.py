import io
import zipfile

import pytest

from conftest import fake_transcode

from hooksounds.archive import archive_path, iter_archive, manifest_to_quotes
from hooksounds.errors import ValidationError
from hooksounds.store import ManifestEntry, QuoteEntry


async def collect(chunks) -> bytes:
    return b"".join([chunk async for chunk in chunks])


def quote(name: str, unit: str = "Probe", category: str = "Ready") -> QuoteEntry:
    return QuoteEntry(
        source_url=f"https://x/{name}.ogg/r", filename=f"{name}.mp3", unit_name=unit, category_name=category
    )


def test_archive_path_skips_empty_groupings():
    assert archive_path(quote("a")) == "Probe/Ready/a.mp3"
    assert archive_path(quote("a", unit="", category="")) == "a.mp3"
    assert archive_path(quote("a", category="")) == "Probe/a.mp3"


def test_manifest_to_quotes_groups_by_folder():
    quotes = manifest_to_quotes([ManifestEntry(source_url="u", filename="a.mp3", folder="done")])
    assert archive_path(quotes[0]) == "done/a.mp3"


async def test_archive_contains_transcoded_entries(fake_client):
    data = await collect(iter_archive(fake_client, [quote("a"), quote("b", unit="Zealot")], fake_transcode))

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.namelist() == ["Probe/Ready/a.mp3", "Zealot/Ready/b.mp3"]
        assert archive.read("Probe/Ready/a.mp3") == b"MP3:OGG:https://x/a.ogg/r"
        assert archive.getinfo("Probe/Ready/a.mp3").compress_type == zipfile.ZIP_DEFLATED


async def test_archive_skips_failed_entries(fake_client):
    fake_client.failing.add("https://x/b.ogg/r")

    data = await collect(iter_archive(fake_client, [quote("a"), quote("b"), quote("c")], fake_transcode))

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.namelist() == ["Probe/Ready/a.mp3", "Probe/Ready/c.mp3"]


async def test_archive_is_finalized_when_everything_fails(fake_client):
    fake_client.failing.add("https://x/a.ogg/r")

    data = await collect(iter_archive(fake_client, [quote("a")], fake_transcode))

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.namelist() == []


async def test_archive_yields_one_chunk_per_entry_plus_tail(fake_client):
    chunks = [c async for c in iter_archive(fake_client, [quote("a"), quote("b")], fake_transcode)]
    assert len(chunks) == 3


async def test_archive_rejects_empty_selection(fake_client):
    with pytest.raises(ValidationError):
        await collect(iter_archive(fake_client, [], fake_transcode))
    assert fake_client.calls == []
