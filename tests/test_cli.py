import json

import pytest

from hooksounds import banner
from hooksounds.cli import export_active, format_lists, import_file, resolve_list_choice
from hooksounds.errors import ValidationError
from hooksounds.store import (
    Recommendation,
    add_recommendation,
    create_list,
    default_setup,
    get_active_list,
    migrate,
)


def collection_with_two_lists():
    collection = migrate(None, default_setup())
    collection = add_recommendation(
        collection, "Stop", Recommendation(text="Done", unit="Probe", faction="Protoss", source_url="u")
    )
    return create_list(collection, "Mine")


def test_format_lists_marks_active():
    collection = collection_with_two_lists()
    lines = format_lists(collection).splitlines()
    assert lines[0].startswith(" [1] Recommended (1 quotes")
    assert lines[1].strip() == "Stop -> done/: 1"
    assert lines[2].startswith("*[2] Mine (0 quotes")


def test_resolve_list_choice():
    collection = collection_with_two_lists()
    mine = collection.lists[1].id
    assert resolve_list_choice(collection, "2") == mine
    assert resolve_list_choice(collection, mine) == mine
    assert resolve_list_choice(collection, "default") == "default"
    assert resolve_list_choice(collection, "3") is None
    assert resolve_list_choice(collection, "nope") is None


def test_import_file(tmp_path, db_path):
    setup = tmp_path / "setup.json"
    setup.write_text(
        json.dumps({"hooks": [{"name": "Stop", "recommendations": [{"text": "x", "sourceUrl": "u"}]}]}),
        encoding="utf-8",
    )
    collection = import_file(str(setup), db_path)
    assert get_active_list(collection).hook("Stop").recommendations[0].source_url == "u"


def test_version_placeholder_gets_digest(tmp_path, monkeypatch):
    version = tmp_path / "VERSION"
    version.write_text("v1.2.3-HASH\n")
    monkeypatch.setattr(banner, "VERSION_PATH", version)
    rendered = banner._read_cli_version()
    assert rendered.startswith("v1.2.3-")
    assert len(rendered) == len("v1.2.3-") + 7


def test_version_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(banner, "VERSION_PATH", tmp_path / "missing")
    assert banner._read_cli_version() == "unknown"


def test_main_menu_banner_lists_options():
    rendered = banner.render_main_menu_banner()
    for item in banner.MENU_ITEMS:
        assert item in rendered


async def test_export_of_empty_list_writes_nothing(tmp_path, db_path):
    target = tmp_path / "out.zip"
    with pytest.raises(ValidationError):
        await export_active(str(target), db_path)
    assert not target.exists()
