"""Reconcile the on-disk sound library with a desired manifest."""

# pylint: disable=broad-exception-caught

import asyncio
import os
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from tqdm import tqdm

from hooksounds.errors import FetchError, FilesystemError, TranscodeError, ValidationError
from hooksounds.manifest import VALID_FOLDERS
from hooksounds.store_utils.models import (
    ItemOutcome,
    ManifestEntry,
    QuoteEntry,
    SaveSummary,
    SyncSummary,
)
from hooksounds.transcoder import transcode_to_mp3
from hooksounds.utils import (
    MAX_CONCURRENT_DOWNLOADS,
    create_download_folder,
    dbg,
    echo,
    sounds_dir,
)

Transcode = Callable[[bytes], Awaitable[bytes]]


class Fetcher(Protocol):
    """Anything that can turn a source URL into bytes (see SoundClient)."""

    async def fetch(self, url: str) -> bytes: ...


def _write_file(path: str, data: bytes) -> None:
    try:
        with open(path, "wb") as file:
            file.write(data)
    except OSError as error:
        raise FilesystemError(f"Failed writing {path}: {error}") from error


def _list_files(folder: str) -> List[str]:
    try:
        names = os.listdir(folder)
    except FileNotFoundError:
        return []
    return sorted(name for name in names if os.path.isfile(os.path.join(folder, name)))


def is_safe_filename(name: str) -> bool:
    """A bare file name that cannot leave its folder."""
    if name in ("", ".", ".."):
        return False
    return os.path.basename(name) == name and "/" not in name and "\\" not in name


class SoundLibrary:
    """Sound library rooted at `base_dir`, one sub-folder per hook."""

    def __init__(
        self,
        client: Fetcher,
        base_dir: Optional[str] = None,
        transcode: Transcode = transcode_to_mp3,
        max_concurrent: int = MAX_CONCURRENT_DOWNLOADS,
        show_progress: bool = False,
    ) -> None:
        self.client = client
        self.base_dir = os.path.abspath(base_dir or sounds_dir())
        self.transcode = transcode
        self.max_concurrent = max(1, max_concurrent)
        self.show_progress = show_progress
        # Serializes passes of this library inside one process; other processes
        # writing the same tree are not guarded.
        self._lock = asyncio.Lock()

    def folder_path(self, folder: str) -> str:
        return os.path.join(self.base_dir, folder)

    async def fetch_and_convert(self, source_url: str) -> bytes:
        """Fetch one source and transcode it; transcoding only runs after a good fetch."""
        raw = await self.client.fetch(source_url)
        return await self.transcode(raw)

    async def _save_one(self, source_url: str, target_path: str) -> None:
        data = await self.fetch_and_convert(source_url)
        _write_file(target_path, data)

    async def _save_many(
        self,
        folder: str,
        target_dir: str,
        items: Sequence[Tuple[str, str]],
        progress: Optional[tqdm] = None,
    ) -> Tuple[List[ItemOutcome], List[ItemOutcome]]:
        """
        Fetch, transcode and write `(source_url, filename)` pairs into `target_dir`.

        One failure never stops the others; results keep input order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def save_wrapper(source_url: str, filename: str) -> None:
            async with semaphore:
                dbg(f"Downloading: {filename} -> {folder}/")
                try:
                    await self._save_one(source_url, os.path.join(target_dir, filename))
                finally:
                    if progress is not None:
                        progress.update(1)

        tasks = [save_wrapper(url, filename) for url, filename in items]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        saved: List[ItemOutcome] = []
        failed: List[ItemOutcome] = []
        for (_, filename), result in zip(items, results):
            if isinstance(result, BaseException):
                if not isinstance(result, (FetchError, TranscodeError, FilesystemError)):
                    dbg(f"Unexpected error for {filename}: {result!r}")
                echo(f"[!] Failed to process {filename}: {result}")
                failed.append(ItemOutcome(filename=filename, folder=folder, error=str(result)))
                continue
            echo(f"[^] Saved: {os.path.join(target_dir, filename)}")
            saved.append(ItemOutcome(filename=filename, folder=folder))
        return saved, failed

    def _delete_orphans(
        self, folder: str, target_dir: str, orphans: Sequence[str]
    ) -> Tuple[List[ItemOutcome], List[ItemOutcome]]:
        deleted: List[ItemOutcome] = []
        errors: List[ItemOutcome] = []
        for name in orphans:
            path = os.path.join(target_dir, name)
            try:
                os.remove(path)
            except OSError as error:
                echo(f"[!] Failed to delete orphan {path}: {error}")
                errors.append(ItemOutcome(filename=name, folder=folder, error=str(error)))
                continue
            echo(f"[*] Deleted orphan: {path}")
            deleted.append(ItemOutcome(filename=name, folder=folder))
        return deleted, errors

    async def sync_all(self, entries: Sequence[ManifestEntry]) -> SyncSummary:
        """
        Bring every library folder into exact correspondence with `entries`.

        Per folder: create it, snapshot its files, delete files the manifest
        does not name, skip files already present by name, then fetch,
        transcode and write the rest. Entries for unknown folders are ignored.
        Entries whose filename would leave its folder, and every entry of a
        folder that cannot be created or listed, are reported as failed while
        the remaining folders carry on.

        Raises:
            ValidationError: If `entries` is empty.
        """
        if not entries:
            raise ValidationError("No quotes provided")

        by_folder: Dict[str, List[ManifestEntry]] = {folder: [] for folder in VALID_FOLDERS}
        for entry in entries:
            if entry.folder in by_folder:
                by_folder[entry.folder].append(entry)
            else:
                dbg(f"Ignoring entry for unknown folder '{entry.folder}': {entry.filename}")

        echo(f"[*] Syncing {len(entries)} quotes to {self.base_dir}")
        saved: List[ItemOutcome] = []
        skipped: List[ItemOutcome] = []
        deleted: List[ItemOutcome] = []
        failed: List[ItemOutcome] = []
        delete_errors: List[ItemOutcome] = []

        async with self._lock:
            progress = tqdm(
                total=sum(len(items) for items in by_folder.values()),
                desc="Sync",
                unit="file",
                leave=False,
                disable=not self.show_progress,
            )
            try:
                for folder in VALID_FOLDERS:
                    wanted: List[ManifestEntry] = []
                    for entry in by_folder[folder]:
                        if is_safe_filename(entry.filename):
                            wanted.append(entry)
                            continue
                        echo(f"[!] Invalid filename in {folder}/: {entry.filename!r}")
                        failed.append(
                            ItemOutcome(
                                filename=entry.filename, folder=folder, error="Invalid filename"
                            )
                        )
                        progress.update(1)

                    try:
                        target_dir = await create_download_folder(self.folder_path(folder))
                        snapshot = set(_list_files(target_dir))
                    except OSError as error:
                        echo(f"[!] Cannot use folder {self.folder_path(folder)}: {error}")
                        failed.extend(
                            ItemOutcome(filename=entry.filename, folder=folder, error=str(error))
                            for entry in wanted
                        )
                        progress.update(len(wanted))
                        continue

                    expected = {entry.filename for entry in wanted}
                    removed, errors = self._delete_orphans(
                        folder, target_dir, sorted(snapshot - expected)
                    )
                    deleted.extend(removed)
                    delete_errors.extend(errors)

                    missing: List[Tuple[str, str]] = []
                    seen: set = set()
                    for entry in wanted:
                        if entry.filename in snapshot or entry.filename in seen:
                            dbg(f"Skipping (exists): {entry.filename}")
                            skipped.append(ItemOutcome(filename=entry.filename, folder=folder))
                            progress.update(1)
                            continue
                        seen.add(entry.filename)
                        missing.append((entry.source_url, entry.filename))

                    ok, bad = await self._save_many(folder, target_dir, missing, progress)
                    saved.extend(ok)
                    failed.extend(bad)
            finally:
                progress.close()

        echo(
            f"[^] Sync complete: {len(saved)} saved, {len(skipped)} skipped, "
            f"{len(deleted)} deleted, {len(failed)} failed"
        )
        return SyncSummary(
            saved=tuple(saved),
            skipped=tuple(skipped),
            deleted=tuple(deleted),
            failed=tuple(failed),
            delete_errors=tuple(delete_errors),
        )

    async def save_to_folder(self, folder: str, quotes: Sequence[QuoteEntry]) -> SaveSummary:
        """
        Fetch, transcode and write every quote into one folder, overwriting.

        Unlike `sync_all` nothing is skipped and nothing is deleted.

        Raises:
            ValidationError: If `folder` is not a library folder, `quotes` is
                empty, or a filename would leave the folder.
            FilesystemError: If the folder cannot be created.
        """
        if folder not in VALID_FOLDERS:
            raise ValidationError(
                f"Invalid folder. Must be one of: {', '.join(VALID_FOLDERS)}"
            )
        if not quotes:
            raise ValidationError("No quotes provided")
        unsafe = [q.filename for q in quotes if not is_safe_filename(q.filename)]
        if unsafe:
            raise ValidationError(f"Invalid filename: {unsafe[0]!r}")

        async with self._lock:
            try:
                target_dir = await create_download_folder(self.folder_path(folder))
            except OSError as error:
                raise FilesystemError(f"Cannot create {self.folder_path(folder)}: {error}") from error
            echo(f"[*] Saving {len(quotes)} quotes to {target_dir}")
            saved, failed = await self._save_many(
                folder, target_dir, [(q.source_url, q.filename) for q in quotes]
            )

        echo(f"[^] Save complete: {len(saved)} saved, {len(failed)} failed")
        return SaveSummary(target_dir=target_dir, saved=tuple(saved), failed=tuple(failed))

    def sounds_info(self) -> dict:
        """Report the library root and which hook folders exist."""
        return {
            "baseDir": self.base_dir,
            "folders": [
                {
                    "name": folder,
                    "path": self.folder_path(folder),
                    "exists": os.path.isdir(self.folder_path(folder)),
                }
                for folder in VALID_FOLDERS
            ],
        }
