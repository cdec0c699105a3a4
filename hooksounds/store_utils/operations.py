"""Pure list-state operations: every function returns a new ListCollection."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Callable, Mapping, Sequence

from hooksounds.errors import ValidationError

from .models import (
    DEFAULT_LIST_ID,
    DEFAULT_LIST_NAME,
    Hook,
    ListCollection,
    Recommendation,
    RecommendationList,
)

HOOK_DEFINITIONS: tuple[tuple[str, str], ...] = (
    ("SessionStart", "When Claude Code starts or resumes a session"),
    ("UserPromptSubmit", "When user submits a prompt"),
    ("Stop", "When Claude finishes responding"),
    ("PreCompact", "Before conversation context is compacted"),
    ("PermissionPrompt", "When Claude needs permission to use a tool"),
    ("Question", "When Claude asks the user a question"),
)
CANONICAL_HOOK_NAMES = tuple(name for name, _ in HOOK_DEFINITIONS)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _coerce_recommendations(value: Any) -> tuple[Recommendation, ...]:
    if not _is_sequence(value):
        return ()
    return tuple(
        rec if isinstance(rec, Recommendation) else Recommendation.from_wire(rec)
        for rec in value
    )


def _coerce_hook(raw: Hook | Mapping[str, Any]) -> Hook:
    if isinstance(raw, Hook):
        return raw
    return Hook(
        name=str(raw.get("name") or ""),
        description=str(raw.get("description") or ""),
        recommendations=_coerce_recommendations(raw.get("recommendations")),
    )


def create_empty_hooks() -> tuple[Hook, ...]:
    """Six canonical hooks, in fixed order, without recommendations."""
    return tuple(Hook(name=name, description=desc) for name, desc in HOOK_DEFINITIONS)


def normalize_hooks(hooks: Sequence[Hook | Mapping[str, Any]] | None) -> tuple[Hook, ...]:
    """
    Return all canonical hooks (existing entries kept) followed by unknown hooks.

    Missing descriptions are filled from the canonical definition and
    non-sequence `recommendations` become empty. Unknown hook names are kept
    for forward compatibility, in their original relative order.
    """
    coerced = [_coerce_hook(h) for h in (hooks or ()) if isinstance(h, (Hook, dict))]
    by_name: dict[str, Hook] = {}
    for hook in coerced:
        by_name[hook.name] = hook

    out: list[Hook] = []
    for name, description in HOOK_DEFINITIONS:
        existing = by_name.get(name)
        if existing is None:
            out.append(Hook(name=name, description=description))
        else:
            out.append(replace(existing, description=existing.description or description))

    known = set(CANONICAL_HOOK_NAMES)
    out.extend(hook for hook in coerced if hook.name not in known)
    return tuple(out)


def default_setup() -> dict[str, Any]:
    """Starter document used when nothing has been persisted yet."""
    return {"hooks": [hook.to_wire() for hook in create_empty_hooks()]}


def _list_from_wire(raw: Mapping[str, Any]) -> RecommendationList:
    hooks = raw.get("hooks")
    return RecommendationList(
        id=str(raw.get("id") or ""),
        name=str(raw.get("name") or ""),
        hooks=normalize_hooks(hooks if _is_sequence(hooks) else []),
    )


def migrate(data: Mapping[str, Any] | None, defaults: Mapping[str, Any]) -> ListCollection:
    """
    Decode any supported persisted shape into a ListCollection.

    Args:
        data: `None` (nothing stored), the current `{lists, activeListId}`
            shape, or the legacy single-setup `{hooks}` shape.
        defaults: Setup document (`{hooks}`) used when `data` is absent.
    """
    if not data:
        default_hooks = defaults.get("hooks") if defaults else None
        return ListCollection(
            lists=(
                RecommendationList(
                    id=DEFAULT_LIST_ID,
                    name=DEFAULT_LIST_NAME,
                    hooks=tuple(
                        _coerce_hook(h) for h in (default_hooks or ()) if isinstance(h, (Hook, dict))
                    ),
                ),
            ),
            active_list_id=DEFAULT_LIST_ID,
        )

    lists = data.get("lists")
    if lists is not None:
        return ListCollection(
            lists=tuple(_list_from_wire(raw) for raw in lists if isinstance(raw, dict)),
            active_list_id=str(data.get("activeListId") or DEFAULT_LIST_ID),
        )

    hooks = data.get("hooks")
    return ListCollection(
        lists=(
            RecommendationList(
                id=DEFAULT_LIST_ID,
                name=DEFAULT_LIST_NAME,
                hooks=normalize_hooks(hooks if _is_sequence(hooks) else []),
            ),
        ),
        active_list_id=DEFAULT_LIST_ID,
    )


def create_list(collection: ListCollection, name: str) -> ListCollection:
    """Append a new list with empty canonical hooks and make it active."""
    new_list = RecommendationList(id=str(uuid.uuid4()), name=name, hooks=create_empty_hooks())
    return replace(
        collection,
        lists=collection.lists + (new_list,),
        active_list_id=new_list.id,
    )


def delete_list(collection: ListCollection, list_id: str) -> ListCollection:
    """Remove a list; the default list is protected."""
    if list_id == DEFAULT_LIST_ID:
        return collection
    active = (
        DEFAULT_LIST_ID if collection.active_list_id == list_id else collection.active_list_id
    )
    return replace(
        collection,
        lists=tuple(lst for lst in collection.lists if lst.id != list_id),
        active_list_id=active,
    )


def rename_list(collection: ListCollection, list_id: str, new_name: str) -> ListCollection:
    if not any(lst.id == list_id for lst in collection.lists):
        return collection
    return replace(
        collection,
        lists=tuple(
            replace(lst, name=new_name) if lst.id == list_id else lst
            for lst in collection.lists
        ),
    )


def set_active_list(collection: ListCollection, list_id: str) -> ListCollection:
    """Point at `list_id` without checking it exists; readers fall back."""
    return replace(collection, active_list_id=list_id)


def get_active_list(collection: ListCollection) -> RecommendationList | None:
    """Active list, or the first list when the pointer does not resolve."""
    for lst in collection.lists:
        if lst.id == collection.active_list_id:
            return lst
    return collection.lists[0] if collection.lists else None


def _update_active_list(
    collection: ListCollection,
    update_fn: Callable[[RecommendationList], RecommendationList],
) -> ListCollection:
    active = get_active_list(collection)
    if active is None:
        return collection
    return replace(
        collection,
        lists=tuple(
            update_fn(lst) if lst.id == active.id else lst for lst in collection.lists
        ),
    )


def _update_active_hook(
    collection: ListCollection,
    hook_name: str,
    update_fn: Callable[[Hook], Hook],
) -> ListCollection:
    return _update_active_list(
        collection,
        lambda lst: replace(
            lst,
            hooks=tuple(update_fn(h) if h.name == hook_name else h for h in lst.hooks),
        ),
    )


def _append_unique(hook: Hook, rec: Recommendation) -> Hook:
    if any(r.source_url == rec.source_url for r in hook.recommendations):
        return hook
    return replace(hook, recommendations=hook.recommendations + (rec,))


def add_recommendation(
    collection: ListCollection, hook_name: str, rec: Recommendation
) -> ListCollection:
    """Append `rec` to a hook of the active list unless its URL is already there."""
    return _update_active_hook(collection, hook_name, lambda h: _append_unique(h, rec))


def remove_recommendation(
    collection: ListCollection, hook_name: str, source_url: str
) -> ListCollection:
    return _update_active_hook(
        collection,
        hook_name,
        lambda h: replace(
            h,
            recommendations=tuple(
                r for r in h.recommendations if r.source_url != source_url
            ),
        ),
    )


def move_recommendation(
    collection: ListCollection,
    from_hook: str,
    to_hook: str,
    rec: Recommendation,
) -> ListCollection:
    """Remove from `from_hook` and append (deduped) to `to_hook` in one step."""

    def move(hook: Hook) -> Hook:
        if hook.name == from_hook:
            return replace(
                hook,
                recommendations=tuple(
                    r for r in hook.recommendations if r.source_url != rec.source_url
                ),
            )
        if hook.name == to_hook:
            return _append_unique(hook, rec)
        return hook

    return _update_active_list(
        collection, lambda lst: replace(lst, hooks=tuple(move(h) for h in lst.hooks))
    )


def reorder_recommendations(
    collection: ListCollection, hook_name: str, old_index: int, new_index: int
) -> ListCollection:
    """Move the recommendation at `old_index` to `new_index` within one hook."""

    def reorder(hook: Hook) -> Hook:
        recs = list(hook.recommendations)
        if not 0 <= old_index < len(recs):
            return hook
        moved = recs.pop(old_index)
        recs.insert(new_index, moved)
        return replace(hook, recommendations=tuple(recs))

    return _update_active_hook(collection, hook_name, reorder)


def import_setup(collection: ListCollection, data: Mapping[str, Any]) -> ListCollection:
    """Replace the active list's hooks with an exported `{hooks: [...]}` document."""
    hooks = data.get("hooks") if isinstance(data, dict) else None
    if not _is_sequence(hooks):
        raise ValidationError("Invalid setup format: expected a 'hooks' list")
    new_hooks = normalize_hooks(hooks)
    return _update_active_list(collection, lambda lst: replace(lst, hooks=new_hooks))


def export_setup(collection: ListCollection) -> dict[str, Any]:
    """Active list hooks in the portable `{hooks: [...]}` shape."""
    active = get_active_list(collection)
    return {"hooks": [hook.to_wire() for hook in active.hooks] if active else []}
