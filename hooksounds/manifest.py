"""Derive library filenames and folders from recommendation lists and selections."""

import re
from typing import List, Optional

from hooksounds.store_utils.models import (
    ListCollection,
    ManifestEntry,
    QuoteEntry,
    RecommendationList,
    Selection,
)
from hooksounds.store_utils.operations import get_active_list
from hooksounds.utils import sanitize

HOOK_TO_FOLDER = {
    "SessionStart": "start",
    "UserPromptSubmit": "userpromptsubmit",
    "Stop": "done",
    "PreCompact": "precompact",
    "PermissionPrompt": "permission",
    "Question": "question",
}
VALID_FOLDERS = ("done", "start", "userpromptsubmit", "precompact", "permission", "question")
TARGET_EXTENSION = ".mp3"
SOURCE_EXTENSION = ".ogg"

# Wiki media URLs look like .../images/a/ab/Probe_Ready.ogg/revision/latest?cb=...
_URL_BASENAME_RE = re.compile(r"/([^/]+)\.ogg/")
_QUOTE_MARKS_RE = re.compile("['‘’]")
_TRAILING_PUNCT_RE = re.compile(r"[.,!;:]+$")


def folder_for_hook(hook_name: str) -> str:
    """Library folder slug for a hook; unknown hooks use their lowercased name."""
    return HOOK_TO_FOLDER.get(hook_name) or hook_name.lower()


def base_name_from_url(source_url: str) -> Optional[str]:
    """Return the token before `.ogg/` in a source URL, or None if absent."""
    match = _URL_BASENAME_RE.search(source_url or "")
    return match.group(1) if match else None


def manifest_filename(source_url: str, text: str, index: int) -> str:
    """
    Build the library filename for one recommendation.

    Args:
        source_url (str): Remote source of the quote.
        text (str): Quote text, appended as a readable suffix.
        index (int): Position in the manifest, used when the URL has no
            recognizable `<name>.ogg/` segment (`audio_<index>`).

    Returns:
        str: `"<base> - <text>.mp3"`, or `"<base>.mp3"` without text.
    """
    base = base_name_from_url(source_url) or f"audio_{index}"
    suffix = sanitize(text, replacement="")
    if suffix:
        return f"{base} - {suffix}{TARGET_EXTENSION}"
    return f"{base}{TARGET_EXTENSION}"


def build_manifest(recommendation_list: Optional[RecommendationList]) -> List[ManifestEntry]:
    """Flatten a list into desired (source, filename, folder) entries."""
    entries: List[ManifestEntry] = []
    if recommendation_list is None:
        return entries
    for hook in recommendation_list.hooks:
        folder = folder_for_hook(hook.name)
        for rec in hook.recommendations:
            entries.append(
                ManifestEntry(
                    source_url=rec.source_url,
                    filename=manifest_filename(rec.source_url, rec.text, len(entries)),
                    folder=folder,
                )
            )
    return entries


def build_active_manifest(collection: ListCollection) -> List[ManifestEntry]:
    """Manifest for whichever list the collection currently resolves as active."""
    return build_manifest(get_active_list(collection))


def source_basename(source_url: str) -> str:
    """First URL path segment ending in `.ogg`, without the extension."""
    for part in (source_url or "").split("/"):
        if part.endswith(SOURCE_EXTENSION):
            return part[: -len(SOURCE_EXTENSION)]
    return "audio"


def quote_suffix(text: Optional[str], max_length: int = 50) -> str:
    """Filename-safe suffix from quote text, cut at a word boundary when long."""
    if not text:
        return ""
    cleaned = sanitize(text, replacement="")
    cleaned = _QUOTE_MARKS_RE.sub("", cleaned)
    cleaned = _TRAILING_PUNCT_RE.sub("", cleaned).strip()
    if len(cleaned) <= max_length:
        return cleaned
    truncated = cleaned[:max_length]
    last_space = truncated.rfind(" ")
    return truncated[:last_space] if last_space > max_length * 0.6 else truncated


def build_selection_quotes(selection: Selection) -> List[QuoteEntry]:
    """Prepare picked quotes for a scoped save or an archive export."""
    quotes: List[QuoteEntry] = []
    for item in selection.items:
        rec = item.recommendation
        base = source_basename(rec.source_url)
        suffix = quote_suffix(rec.text)
        filename = f"{base} - {suffix}{TARGET_EXTENSION}" if suffix else f"{base}{TARGET_EXTENSION}"
        quotes.append(
            QuoteEntry(
                source_url=rec.source_url,
                filename=filename,
                unit_name=sanitize(item.unit_name),
                category_name=sanitize(item.category_name),
            )
        )
    return quotes
