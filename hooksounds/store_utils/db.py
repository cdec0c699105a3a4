"""SQLite persistence for the recommendation list collection."""

from __future__ import annotations

import json
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from hooksounds.errors import ValidationError
from hooksounds.utils import PROJECT_ROOT, dbg

from .models import ListCollection
from .operations import default_setup, migrate

DEFAULT_DB_NAME = "lists.db"
STATE_KEY = "recommended-setup"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _default_db_path() -> str:
    env_path = os.environ.get("HOOKSOUNDS_DB_PATH", "").strip()
    if env_path:
        return os.path.abspath(env_path)
    return str((PROJECT_ROOT / DEFAULT_DB_NAME).resolve())


def _resolve_db_path(db_path: str | None) -> str:
    resolved = os.path.abspath(db_path) if db_path else _default_db_path()
    db_dir = os.path.dirname(resolved)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    return resolved


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute("PRAGMA busy_timeout = 5000")
    return conn


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS list_state (
            state_key TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )


def _open_db(db_path: str | None = None) -> tuple[sqlite3.Connection, str]:
    resolved = _resolve_db_path(db_path)
    conn = _connect(resolved)
    _ensure_schema(conn)
    return conn, resolved


def _read_document(conn: sqlite3.Connection) -> dict[str, Any] | None:
    row = conn.execute(
        "SELECT payload FROM list_state WHERE state_key = ? LIMIT 1", (STATE_KEY,)
    ).fetchone()
    if not row:
        return None
    try:
        data = json.loads(row["payload"])
    except json.JSONDecodeError:
        dbg("Stored list state is not valid JSON, falling back to defaults")
        return None
    return data if isinstance(data, dict) else None


def decode_document(
    data: Mapping[str, Any] | None, defaults: Mapping[str, Any] | None = None
) -> ListCollection:
    """Single entry point from any persisted/imported shape to a ListCollection."""
    return migrate(data, defaults if defaults is not None else default_setup())


def load_collection(
    db_path: str | None = None, defaults: Mapping[str, Any] | None = None
) -> ListCollection:
    """Load the persisted collection, migrating legacy shapes, or build defaults."""
    conn, _ = _open_db(db_path)
    try:
        return decode_document(_read_document(conn), defaults)
    finally:
        conn.close()


def save_collection(collection: ListCollection, db_path: str | None = None) -> str:
    """Persist `collection` in the `{lists, activeListId}` shape. Returns DB path."""
    now = _utc_now()
    payload = json.dumps(collection.to_wire(), ensure_ascii=False)
    conn, resolved = _open_db(db_path)
    try:
        with conn:
            conn.execute(
                """
                INSERT INTO list_state (state_key, payload, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(state_key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (STATE_KEY, payload, now, now),
            )
        return resolved
    finally:
        conn.close()


def update_collection(
    update_fn: Callable[[ListCollection], ListCollection],
    db_path: str | None = None,
) -> ListCollection:
    """Load, apply one pure transition, persist, and return the new collection."""
    current = load_collection(db_path)
    updated = update_fn(current)
    if updated is not current:
        save_collection(updated, db_path)
    return updated


def import_document(raw_text: str) -> dict[str, Any]:
    """Parse an exported setup file into a mapping, rejecting non-JSON input."""
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as error:
        raise ValidationError(f"Failed to parse JSON: {error}") from error
    if not isinstance(data, dict):
        raise ValidationError("Invalid setup file format")
    return data
