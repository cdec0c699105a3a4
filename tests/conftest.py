"""Shared fixtures: an in-memory fetcher and a transcoder that needs no ffmpeg."""

import pytest

from hooksounds.errors import FetchError
from hooksounds.library import SoundLibrary

WIKI = "https://static.wikia.nocookie.net/starcraft/images"


def wiki_url(name: str) -> str:
    return f"{WIKI}/a/ab/{name}.ogg/revision/latest?cb=20200101"


class FakeClient:
    """Serves `OGG:<url>` for every URL except those listed in `failing`."""

    def __init__(self):
        self.failing = set()
        self.calls = []

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url in self.failing:
            raise FetchError("Fetch failed with status 404", status=404)
        return f"OGG:{url}".encode()


async def fake_transcode(data: bytes) -> bytes:
    return b"MP3:" + data


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def sounds_root(tmp_path):
    return tmp_path / "sounds"


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "lists.db")


@pytest.fixture
def library(fake_client, sounds_root):
    return SoundLibrary(fake_client, str(sounds_root), transcode=fake_transcode)
