"""Public list store facade built from smaller store utility modules."""

from __future__ import annotations

from hooksounds.store_utils.db import (
    decode_document,
    import_document,
    load_collection,
    save_collection,
    update_collection,
)
from hooksounds.store_utils.models import (
    DEFAULT_LIST_ID,
    DEFAULT_LIST_NAME,
    Hook,
    ItemOutcome,
    ListCollection,
    ManifestEntry,
    QuoteEntry,
    Recommendation,
    RecommendationList,
    SaveSummary,
    SelectedQuote,
    Selection,
    SyncSummary,
)
from hooksounds.store_utils.operations import (
    CANONICAL_HOOK_NAMES,
    HOOK_DEFINITIONS,
    add_recommendation,
    create_empty_hooks,
    create_list,
    default_setup,
    delete_list,
    export_setup,
    get_active_list,
    import_setup,
    migrate,
    move_recommendation,
    normalize_hooks,
    remove_recommendation,
    rename_list,
    reorder_recommendations,
    set_active_list,
)

__all__ = [
    "CANONICAL_HOOK_NAMES",
    "DEFAULT_LIST_ID",
    "DEFAULT_LIST_NAME",
    "HOOK_DEFINITIONS",
    "Hook",
    "ItemOutcome",
    "ListCollection",
    "ManifestEntry",
    "QuoteEntry",
    "Recommendation",
    "RecommendationList",
    "SaveSummary",
    "SelectedQuote",
    "Selection",
    "SyncSummary",
    "add_recommendation",
    "create_empty_hooks",
    "create_list",
    "decode_document",
    "default_setup",
    "delete_list",
    "export_setup",
    "get_active_list",
    "import_document",
    "import_setup",
    "load_collection",
    "migrate",
    "move_recommendation",
    "normalize_hooks",
    "remove_recommendation",
    "rename_list",
    "reorder_recommendations",
    "save_collection",
    "set_active_list",
    "update_collection",
]
