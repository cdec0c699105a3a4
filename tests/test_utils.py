import os

from hooksounds.utils import DEFAULT_SOUNDS_DIR, create_download_folder, sanitize, sounds_dir


def test_sanitize():
    assert sanitize('a/b:c*d?"e<f>g|h') == "a_b_c_d__e_f_g_h"
    assert sanitize("Why? Not", replacement="") == "Why Not"
    assert sanitize(None) == ""
    assert sanitize("") == ""


def test_sounds_dir_default(monkeypatch):
    monkeypatch.delenv("HOOKSOUNDS_SOUNDS_DIR", raising=False)
    assert sounds_dir() == DEFAULT_SOUNDS_DIR
    assert DEFAULT_SOUNDS_DIR.endswith(os.path.join(".claude", "sounds"))


def test_sounds_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HOOKSOUNDS_SOUNDS_DIR", str(tmp_path))
    assert sounds_dir() == str(tmp_path)


async def test_create_download_folder(tmp_path):
    path = await create_download_folder(str(tmp_path), "a", "b")
    assert os.path.isdir(path)
    assert path == os.path.join(str(tmp_path), "a", "b")
    assert await create_download_folder(path) == path
