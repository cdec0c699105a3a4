"""Data models for recommendation lists and library sync results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_LIST_ID = "default"
DEFAULT_LIST_NAME = "Recommended"


@dataclass(frozen=True)
class Recommendation:
    """One audio quote bound to a hook; `source_url` is its identity."""

    text: str
    unit: str
    faction: str
    source_url: str

    @classmethod
    def from_wire(cls, raw: Any) -> "Recommendation":
        """Decode a wire mapping, accepting the older `audioUrl`/`race` keys."""
        data = raw if isinstance(raw, dict) else {}
        return cls(
            text=str(data.get("text") or ""),
            unit=str(data.get("unit") or ""),
            faction=str(data.get("faction") or data.get("race") or ""),
            source_url=str(data.get("sourceUrl") or data.get("audioUrl") or ""),
        )

    def to_wire(self) -> dict[str, str]:
        return {
            "text": self.text,
            "unit": self.unit,
            "faction": self.faction,
            "sourceUrl": self.source_url,
        }


@dataclass(frozen=True)
class Hook:
    """Lifecycle event of the assistant tool with its ordered recommendations."""

    name: str
    description: str
    recommendations: tuple[Recommendation, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "recommendations": [rec.to_wire() for rec in self.recommendations],
        }


@dataclass(frozen=True)
class RecommendationList:
    """Named set of hooks; the list with id `default` cannot be deleted."""

    id: str
    name: str
    hooks: tuple[Hook, ...] = ()

    def hook(self, name: str) -> Hook | None:
        for hook in self.hooks:
            if hook.name == name:
                return hook
        return None

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "hooks": [hook.to_wire() for hook in self.hooks],
        }


@dataclass(frozen=True)
class ListCollection:
    """All lists plus the active-list pointer (resolved lazily on read)."""

    lists: tuple[RecommendationList, ...]
    active_list_id: str = DEFAULT_LIST_ID

    def to_wire(self) -> dict[str, Any]:
        return {
            "lists": [lst.to_wire() for lst in self.lists],
            "activeListId": self.active_list_id,
        }


@dataclass(frozen=True)
class ManifestEntry:
    """Desired library file derived from one recommendation."""

    source_url: str
    filename: str
    folder: str

    @classmethod
    def from_wire(cls, raw: Any) -> "ManifestEntry":
        data = raw if isinstance(raw, dict) else {}
        return cls(
            source_url=str(data.get("sourceUrl") or data.get("audioUrl") or ""),
            filename=str(data.get("filename") or ""),
            folder=str(data.get("folder") or ""),
        )


@dataclass(frozen=True)
class QuoteEntry:
    """Quote prepared for a scoped save or an archive export."""

    source_url: str
    filename: str
    unit_name: str = ""
    category_name: str = ""

    @classmethod
    def from_wire(cls, raw: Any) -> "QuoteEntry":
        data = raw if isinstance(raw, dict) else {}
        return cls(
            source_url=str(data.get("sourceUrl") or data.get("audioUrl") or ""),
            filename=str(data.get("filename") or ""),
            unit_name=str(data.get("unitName") or ""),
            category_name=str(data.get("categoryName") or ""),
        )


@dataclass(frozen=True)
class SelectedQuote:
    """One quote picked in the catalog, with the unit/category it was found under."""

    recommendation: Recommendation
    unit_name: str
    category_name: str


@dataclass(frozen=True)
class Selection:
    """Explicit set of picked quotes handed to export operations."""

    items: tuple[SelectedQuote, ...] = ()

    @classmethod
    def from_wire(cls, raw: Any) -> "Selection":
        """Decode `[{quote: {...}, unitName, categoryName}, ...]`."""
        items = []
        for entry in raw if isinstance(raw, list) else []:
            if not isinstance(entry, dict):
                continue
            items.append(
                SelectedQuote(
                    recommendation=Recommendation.from_wire(entry.get("quote")),
                    unit_name=str(entry.get("unitName") or ""),
                    category_name=str(entry.get("categoryName") or ""),
                )
            )
        return cls(items=tuple(items))

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ItemOutcome:
    """Per-file result of a reconciliation step."""

    filename: str
    folder: str
    error: str | None = None

    def to_wire(self) -> dict[str, str]:
        out = {"filename": self.filename, "folder": self.folder}
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class SyncSummary:
    """Aggregated result of one full library sync."""

    saved: tuple[ItemOutcome, ...] = ()
    skipped: tuple[ItemOutcome, ...] = ()
    deleted: tuple[ItemOutcome, ...] = ()
    failed: tuple[ItemOutcome, ...] = ()
    delete_errors: tuple[ItemOutcome, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        return {
            "success": True,
            "saved": len(self.saved),
            "skipped": len(self.skipped),
            "deleted": len(self.deleted),
            "failed": len(self.failed),
            "details": {
                "saved": [item.to_wire() for item in self.saved],
                "skipped": [item.to_wire() for item in self.skipped],
                "deleted": [item.to_wire() for item in self.deleted],
                "failed": [item.to_wire() for item in self.failed],
                "deleteErrors": [item.to_wire() for item in self.delete_errors],
            },
        }


@dataclass(frozen=True)
class SaveSummary:
    """Result of saving an explicit quote set into one folder."""

    target_dir: str
    saved: tuple[ItemOutcome, ...] = ()
    failed: tuple[ItemOutcome, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        return {
            "success": True,
            "targetDir": self.target_dir,
            "saved": len(self.saved),
            "failed": len(self.failed),
            "details": {
                "saved": [item.filename for item in self.saved],
                "failed": [
                    {"filename": item.filename, "error": item.error or ""}
                    for item in self.failed
                ],
            },
        }
