"""Interactive menu for managing lists and syncing the sound library."""

import asyncio
import os
from typing import Optional

from aiohttp import ClientSession

from hooksounds.archive import iter_archive, manifest_to_quotes
from hooksounds.errors import HookSoundsError, ValidationError
from hooksounds.fetcher import SoundClient
from hooksounds.library import SoundLibrary
from hooksounds.manifest import build_active_manifest, folder_for_hook
from hooksounds.server import SETUP_ARCHIVE_NAME, run_server
from hooksounds.store import (
    ListCollection,
    create_list,
    get_active_list,
    import_document,
    import_setup,
    load_collection,
    set_active_list,
    update_collection,
)
from hooksounds.transcoder import is_ffmpeg_available
from hooksounds.utils import choices


def format_lists(collection: ListCollection) -> str:
    """Render every list with its hooks and recommendation counts."""
    active = get_active_list(collection)
    lines = []
    for count, lst in enumerate(collection.lists, start=1):
        marker = "*" if active is not None and lst.id == active.id else " "
        total = sum(len(hook.recommendations) for hook in lst.hooks)
        lines.append(f"{marker}[{count}] {lst.name} ({total} quotes, id={lst.id})")
        for hook in lst.hooks:
            if hook.recommendations:
                lines.append(
                    f"      {hook.name} -> {folder_for_hook(hook.name)}/: "
                    f"{len(hook.recommendations)}"
                )
    return "\n".join(lines)


def resolve_list_choice(collection: ListCollection, raw: str) -> Optional[str]:
    """Map a 1-based menu number or a list id to a list id."""
    raw = raw.strip()
    if raw.isdigit() and 1 <= int(raw) <= len(collection.lists):
        return collection.lists[int(raw) - 1].id
    for lst in collection.lists:
        if lst.id == raw:
            return lst.id
    return None


async def sync_active(db_path: Optional[str] = None) -> None:
    collection = load_collection(db_path)
    active = get_active_list(collection)
    print(f"[*] Active list: {active.name if active else '-'}")
    async with ClientSession() as session:
        library = SoundLibrary(SoundClient(session), show_progress=True)
        summary = await library.sync_all(build_active_manifest(collection))
    for item in summary.failed:
        print(f"[!] {item.folder}/{item.filename}: {item.error}")
    for item in summary.delete_errors:
        print(f"[!] Could not delete {item.folder}/{item.filename}: {item.error}")


async def export_active(target_path: str, db_path: Optional[str] = None) -> int:
    """Write the active list as a ZIP grouped by hook folder. Returns bytes written."""
    quotes = manifest_to_quotes(build_active_manifest(load_collection(db_path)))
    if not quotes:
        raise ValidationError("Active list has no recommendations")
    written = 0
    async with ClientSession() as session:
        chunks = iter_archive(SoundClient(session), quotes)
        with open(target_path, "wb") as file:
            async for chunk in chunks:
                file.write(chunk)
                written += len(chunk)
    return written


def import_file(path: str, db_path: Optional[str] = None) -> ListCollection:
    """Replace the active list's hooks with a setup file exported earlier."""
    with open(path, "r", encoding="utf-8") as file:
        data = import_document(file.read())
    return update_collection(lambda c: import_setup(c, data), db_path)


def _prompt_create() -> None:
    name = input("[?] New list name: ").strip()
    if not name:
        print("[!] List name is required")
        return
    updated = update_collection(lambda c: create_list(c, name))
    print(f"[^] Created and activated: {name} (id={updated.active_list_id})")


def _prompt_switch() -> None:
    collection = load_collection()
    print(format_lists(collection))
    list_id = resolve_list_choice(collection, input("[?] List number or id: "))
    if list_id is None:
        print("[!] No such list")
        return
    update_collection(lambda c: set_active_list(c, list_id))
    print(f"[^] Active list: {list_id}")


def _prompt_import() -> None:
    path = input("[?] Path to setup JSON file: ").strip()
    if not os.path.isfile(path):
        print(f"[!] File not found: {path}")
        return
    import_file(path)
    print("[^] Setup imported into the active list")


def _prompt_export() -> None:
    path = input(f"[?] Output file (default {SETUP_ARCHIVE_NAME}): ").strip()
    path = path or SETUP_ARCHIVE_NAME
    if os.path.exists(path) and not choices(f"[?] {path} exists, overwrite? (Y/N): "):
        return
    written = asyncio.run(export_active(path))
    print(f"[^] Wrote {path} ({written} bytes)")


def menu() -> None:
    """
    Run the main menu until the user exits.

    Each action reloads the persisted collection, so edits made through the web
    server in between are picked up.
    """
    if not is_ffmpeg_available():
        print("[!] ffmpeg not found; set HOOKSOUNDS_FFMPEG or install it to convert quotes")

    while True:
        choice = input("[?] Select menu: ").strip()
        try:
            if choice == "1":
                asyncio.run(sync_active())
            elif choice == "2":
                print(format_lists(load_collection()))
            elif choice == "3":
                _prompt_create()
            elif choice == "4":
                _prompt_switch()
            elif choice == "5":
                _prompt_import()
            elif choice == "6":
                _prompt_export()
            elif choice == "7":
                run_server()
            elif choice == "8":
                break
            else:
                print("[!] Unknown option")
        except (HookSoundsError, OSError) as error:
            print(f"[!] {error}")
