import os

import pytest

from conftest import fake_transcode

from hooksounds.errors import TranscodeError, ValidationError
from hooksounds.library import SoundLibrary
from hooksounds.manifest import VALID_FOLDERS
from hooksounds.store import ManifestEntry, QuoteEntry


def entry(name: str, folder: str = "done") -> ManifestEntry:
    return ManifestEntry(source_url=f"https://x/{name}.ogg/r", filename=f"{name}.mp3", folder=folder)


def files(root, folder: str = "done"):
    path = root / folder
    return sorted(p.name for p in path.iterdir() if p.is_file())


async def test_sync_deletes_orphans_and_skips_existing(library, sounds_root, fake_client):
    (sounds_root / "done").mkdir(parents=True)
    (sounds_root / "done" / "a.mp3").write_bytes(b"kept")
    (sounds_root / "done" / "orphan.mp3").write_bytes(b"stale")

    summary = await library.sync_all([entry("a")])

    assert (len(summary.saved), len(summary.skipped), len(summary.deleted)) == (0, 1, 1)
    assert files(sounds_root) == ["a.mp3"]
    assert (sounds_root / "done" / "a.mp3").read_bytes() == b"kept"
    assert fake_client.calls == []


async def test_sync_saves_new_entries(library, sounds_root):
    summary = await library.sync_all([entry("a"), entry("b")])

    assert (len(summary.saved), len(summary.skipped), len(summary.deleted)) == (2, 0, 0)
    assert (sounds_root / "done" / "a.mp3").read_bytes() == b"MP3:OGG:https://x/a.ogg/r"
    for folder in VALID_FOLDERS:
        assert (sounds_root / folder).is_dir()


async def test_sync_continues_past_a_failed_fetch(library, sounds_root, fake_client):
    fake_client.failing.add("https://x/b.ogg/r")

    summary = await library.sync_all([entry("a"), entry("b"), entry("c")])

    assert [item.filename for item in summary.failed] == ["b.mp3"]
    assert "404" in summary.failed[0].error
    assert [item.filename for item in summary.saved] == ["a.mp3", "c.mp3"]
    assert files(sounds_root) == ["a.mp3", "c.mp3"]


async def test_sync_reports_transcode_failure(fake_client, sounds_root):
    async def broken(_data):
        raise TranscodeError("ffmpeg failed: bad data")

    library = SoundLibrary(fake_client, str(sounds_root), transcode=broken)
    summary = await library.sync_all([entry("a")])

    assert summary.failed[0].error == "ffmpeg failed: bad data"
    assert files(sounds_root) == []


async def test_sync_is_idempotent(library, fake_client):
    manifest = [entry("a"), entry("b", folder="start")]
    await library.sync_all(manifest)
    calls = len(fake_client.calls)

    summary = await library.sync_all(manifest)

    assert (len(summary.saved), len(summary.skipped), len(summary.deleted)) == (0, 2, 0)
    assert len(fake_client.calls) == calls


async def test_sync_converges_every_folder(library, sounds_root):
    (sounds_root / "question").mkdir(parents=True)
    (sounds_root / "question" / "old.mp3").write_bytes(b"x")
    (sounds_root / "question" / "keep-dir").mkdir()

    await library.sync_all([entry("a"), entry("b", folder="permission")])

    assert files(sounds_root, "done") == ["a.mp3"]
    assert files(sounds_root, "permission") == ["b.mp3"]
    assert files(sounds_root, "question") == []
    assert (sounds_root / "question" / "keep-dir").is_dir()


async def test_sync_counts_duplicate_filenames_as_skipped(library, fake_client):
    summary = await library.sync_all([entry("a"), entry("a")])

    assert (len(summary.saved), len(summary.skipped)) == (1, 1)
    assert len(fake_client.calls) == 1


async def test_sync_ignores_unknown_folders(library, sounds_root, fake_client):
    summary = await library.sync_all([entry("a", folder="elsewhere")])

    assert summary.saved == () and summary.failed == ()
    assert fake_client.calls == []
    assert not (sounds_root / "elsewhere").exists()


async def test_sync_rejects_empty_manifest(library, sounds_root):
    with pytest.raises(ValidationError):
        await library.sync_all([])
    assert not sounds_root.exists()


async def test_sync_summary_wire_shape(library):
    summary = await library.sync_all([entry("a")])
    wire = summary.to_wire()
    assert wire["success"] is True
    assert wire["saved"] == 1
    assert wire["details"]["saved"] == [{"filename": "a.mp3", "folder": "done"}]


async def test_save_to_folder_overwrites_and_keeps_others(library, sounds_root):
    target = sounds_root / "start"
    target.mkdir(parents=True)
    (target / "a.mp3").write_bytes(b"old")
    (target / "other.mp3").write_bytes(b"other")

    summary = await library.save_to_folder(
        "start", [QuoteEntry(source_url="https://x/a.ogg/r", filename="a.mp3")]
    )

    assert [item.filename for item in summary.saved] == ["a.mp3"]
    assert summary.target_dir == str(target)
    assert (target / "a.mp3").read_bytes() == b"MP3:OGG:https://x/a.ogg/r"
    assert (target / "other.mp3").read_bytes() == b"other"


async def test_save_to_folder_reports_failures(library, fake_client):
    fake_client.failing.add("https://x/b.ogg/r")
    summary = await library.save_to_folder(
        "done",
        [
            QuoteEntry(source_url="https://x/a.ogg/r", filename="a.mp3"),
            QuoteEntry(source_url="https://x/b.ogg/r", filename="b.mp3"),
        ],
    )
    wire = summary.to_wire()
    assert (wire["saved"], wire["failed"]) == (1, 1)
    assert wire["details"]["failed"][0]["filename"] == "b.mp3"


async def test_save_to_folder_validates_before_io(library, sounds_root, fake_client):
    quote = QuoteEntry(source_url="https://x/a.ogg/r", filename="a.mp3")
    with pytest.raises(ValidationError, match="Invalid folder"):
        await library.save_to_folder("nope", [quote])
    with pytest.raises(ValidationError):
        await library.save_to_folder("done", [])
    assert fake_client.calls == []
    assert not sounds_root.exists()


async def test_concurrency_limit_keeps_order(fake_client, sounds_root):
    library = SoundLibrary(fake_client, str(sounds_root), transcode=fake_transcode, max_concurrent=1)
    summary = await library.sync_all([entry(name) for name in "cab"])
    assert [item.filename for item in summary.saved] == ["c.mp3", "a.mp3", "b.mp3"]


def test_sounds_info(library, sounds_root):
    (sounds_root / "done").mkdir(parents=True)
    info = library.sounds_info()
    assert info["baseDir"] == str(sounds_root)
    by_name = {f["name"]: f["exists"] for f in info["folders"]}
    assert by_name["done"] is True
    assert by_name["start"] is False


def test_base_dir_from_env(fake_client, tmp_path, monkeypatch):
    monkeypatch.setenv("HOOKSOUNDS_SOUNDS_DIR", str(tmp_path / "lib"))
    assert SoundLibrary(fake_client).base_dir == str(tmp_path / "lib")


@pytest.mark.parametrize("filename", ["../../escaped.mp3", "sub/a.mp3", "..", ".", ""])
async def test_save_to_folder_rejects_filenames_leaving_the_folder(library, tmp_path, sounds_root, fake_client, filename):
    quotes = [QuoteEntry(source_url="https://x/a.ogg/r", filename=filename)]
    with pytest.raises(ValidationError, match="Invalid filename"):
        await library.save_to_folder("done", quotes)
    assert not (tmp_path / "escaped.mp3").exists()
    assert not sounds_root.exists()
    assert fake_client.calls == []


async def test_sync_fails_entries_with_unsafe_filenames(library, tmp_path, sounds_root, fake_client):
    bad = ManifestEntry(source_url="https://x/evil.ogg/r", filename="../../escaped.mp3", folder="done")

    summary = await library.sync_all([bad, entry("a")])

    assert [(item.filename, item.error) for item in summary.failed] == [("../../escaped.mp3", "Invalid filename")]
    assert [item.filename for item in summary.saved] == ["a.mp3"]
    assert "https://x/evil.ogg/r" not in fake_client.calls
    assert not (tmp_path / "escaped.mp3").exists()
    assert files(sounds_root) == ["a.mp3"]


async def test_sync_continues_past_an_unusable_folder(library, sounds_root):
    sounds_root.mkdir(parents=True)
    (sounds_root / "done").write_bytes(b"not a directory")

    summary = await library.sync_all([entry("a"), entry("b", folder="start")])

    assert [(item.filename, item.folder) for item in summary.failed] == [("a.mp3", "done")]
    assert summary.failed[0].error
    assert [item.filename for item in summary.saved] == ["b.mp3"]
    assert files(sounds_root, "start") == ["b.mp3"]
    assert (sounds_root / "done").read_bytes() == b"not a directory"


async def test_save_to_folder_reports_unusable_folder(library, sounds_root):
    sounds_root.mkdir(parents=True)
    (sounds_root / "done").write_bytes(b"not a directory")

    summary = await library.save_to_folder(
        "done", [QuoteEntry(source_url="https://x/a.ogg/r", filename="a.mp3")]
    )

    assert summary.saved == ()
    assert [item.filename for item in summary.failed] == ["a.mp3"]


async def test_sync_continues_when_an_orphan_cannot_be_deleted(library, sounds_root, monkeypatch):
    target = sounds_root / "done"
    target.mkdir(parents=True)
    for name in ("locked.mp3", "stale.mp3"):
        (target / name).write_bytes(b"old")

    real_remove = os.remove

    def remove(path):
        if path.endswith("locked.mp3"):
            raise PermissionError(13, "Permission denied", path)
        real_remove(path)

    monkeypatch.setattr("hooksounds.library.os.remove", remove)

    summary = await library.sync_all([entry("a")])

    assert [item.filename for item in summary.deleted] == ["stale.mp3"]
    assert [item.filename for item in summary.delete_errors] == ["locked.mp3"]
    assert [item.filename for item in summary.saved] == ["a.mp3"]
    assert files(sounds_root) == ["a.mp3", "locked.mp3"]
    wire = summary.to_wire()
    assert wire["details"]["deleteErrors"][0]["filename"] == "locked.mp3"
    assert "Permission denied" in wire["details"]["deleteErrors"][0]["error"]
