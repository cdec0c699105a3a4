"""aiohttp web application exposing the sound library and list store."""

# pylint: disable=line-too-long

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

from aiohttp import ClientSession, web

from hooksounds.archive import iter_archive, manifest_to_quotes
from hooksounds.errors import FetchError, HookSoundsError, TranscodeError, ValidationError
from hooksounds.fetcher import SoundClient
from hooksounds.library import Fetcher, SoundLibrary, Transcode
from hooksounds.manifest import build_active_manifest, build_selection_quotes
from hooksounds.store_utils import db
from hooksounds.store_utils import operations as ops
from hooksounds.store_utils.models import (
    ListCollection,
    ManifestEntry,
    QuoteEntry,
    Recommendation,
    Selection,
)
from hooksounds.transcoder import transcode_to_mp3
from hooksounds.utils import SERVER_HOST, SERVER_PORT, dbg, echo

CLIENT_KEY = web.AppKey("client", object)
LIBRARY_KEY = web.AppKey("library", SoundLibrary)
DB_PATH_KEY = web.AppKey("db_path", object)
TRANSCODE_KEY = web.AppKey("transcode", object)

ARCHIVE_NAME = "hook-quotes.zip"
SETUP_ARCHIVE_NAME = "hook-sounds.zip"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

STREAM_STARTED = "hooksounds.stream_started"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """
    Map validation errors to 400 and attach CORS headers for the browser UI.

    Once a streamed body has started, errors propagate so aiohttp drops the
    connection instead of answering twice.
    """
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except HookSoundsError as error:
        if request.get(STREAM_STARTED):
            echo(f"[!] {request.method} {request.path} aborted mid-stream: {error}")
            raise
        if isinstance(error, ValidationError):
            return _with_cors(_error(400, str(error)))
        echo(f"[!] {request.method} {request.path}: {error}")
        response = _error(500, str(error))
    return _with_cors(response)


def _with_cors(response: web.StreamResponse) -> web.StreamResponse:
    if not response.prepared:
        response.headers.update(CORS_HEADERS)
    return response


async def _json_body(request: web.Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise ValidationError(f"Invalid JSON body: {error}") from error
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def _parse_quotes(body: dict[str, Any]) -> List[QuoteEntry]:
    """Accept prepared `quotes` or a raw `selection` of catalog items."""
    if "selection" in body:
        return build_selection_quotes(Selection.from_wire(body.get("selection")))
    raw = body.get("quotes")
    if not isinstance(raw, list):
        return []
    return [QuoteEntry.from_wire(item) for item in raw]


def _library(request: web.Request) -> SoundLibrary:
    return request.app[LIBRARY_KEY]


def _update(request: web.Request, update_fn: Callable[[ListCollection], ListCollection]) -> web.Response:
    updated = db.update_collection(update_fn, request.app[DB_PATH_KEY])
    return web.json_response(updated.to_wire())


async def health(_: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def audio_proxy(request: web.Request) -> web.Response:
    """Pass the source bytes through untouched, for in-browser preview."""
    url = request.query.get("url")
    if not url:
        return _error(400, "URL parameter is required")
    dbg(f"Audio proxy request, URL: {url}")
    try:
        data = await request.app[CLIENT_KEY].fetch(url)
    except FetchError as error:
        dbg(f"Audio not found: {error}")
        return _error(404, "Audio not found")
    return web.Response(
        body=data, content_type="audio/ogg", headers={"Accept-Ranges": "bytes"}
    )


async def single_download(request: web.Request) -> web.Response:
    url = request.query.get("url")
    if not url:
        return _error(400, "URL parameter is required")
    filename = request.query.get("filename") or "audio.mp3"
    echo(f"[*] Downloading: {url}")
    try:
        data = await _library(request).fetch_and_convert(url)
    except FetchError as error:
        return _error(500, str(error))
    except TranscodeError as error:
        return _error(500, f"Conversion failed: {error}")
    echo(f"[^] Conversion complete: {filename}")
    return web.Response(
        body=data,
        content_type="audio/mpeg",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _stream_zip(
    request: web.Request, chunks: AsyncIterator[bytes], filename: str
) -> web.StreamResponse:
    response = web.StreamResponse(
        headers={
            "Content-Type": "application/zip",
            "Content-Disposition": f'attachment; filename="{filename}"',
            **CORS_HEADERS,
        }
    )
    await response.prepare(request)
    request[STREAM_STARTED] = True
    async for chunk in chunks:
        await response.write(chunk)
    await response.write_eof()
    return response


async def batch_download(request: web.Request) -> web.StreamResponse:
    quotes = _parse_quotes(await _json_body(request))
    if not quotes:
        raise ValidationError("No quotes provided")
    chunks = iter_archive(request.app[CLIENT_KEY], quotes, request.app[TRANSCODE_KEY])
    return await _stream_zip(request, chunks, ARCHIVE_NAME)


async def save_to_sounds(request: web.Request) -> web.Response:
    body = await _json_body(request)
    summary = await _library(request).save_to_folder(
        str(body.get("folder") or ""), _parse_quotes(body)
    )
    return web.json_response(summary.to_wire())


async def save_to_sounds_all(request: web.Request) -> web.Response:
    body = await _json_body(request)
    raw = body.get("quotes")
    entries = [ManifestEntry.from_wire(item) for item in raw] if isinstance(raw, list) else []
    summary = await _library(request).sync_all(entries)
    return web.json_response(summary.to_wire())


async def sounds_info(request: web.Request) -> web.Response:
    return web.json_response(_library(request).sounds_info())


async def sync_active_list(request: web.Request) -> web.Response:
    """Build the manifest from the persisted active list and run a full sync."""
    collection = db.load_collection(request.app[DB_PATH_KEY])
    summary = await _library(request).sync_all(build_active_manifest(collection))
    return web.json_response(summary.to_wire())


async def active_list_archive(request: web.Request) -> web.StreamResponse:
    collection = db.load_collection(request.app[DB_PATH_KEY])
    quotes = manifest_to_quotes(build_active_manifest(collection))
    if not quotes:
        raise ValidationError("Active list has no recommendations")
    chunks = iter_archive(request.app[CLIENT_KEY], quotes, request.app[TRANSCODE_KEY])
    return await _stream_zip(request, chunks, SETUP_ARCHIVE_NAME)


async def get_lists(request: web.Request) -> web.Response:
    return web.json_response(db.load_collection(request.app[DB_PATH_KEY]).to_wire())


async def create_list(request: web.Request) -> web.Response:
    name = str((await _json_body(request)).get("name") or "").strip()
    if not name:
        raise ValidationError("List name is required")
    return _update(request, lambda c: ops.create_list(c, name))


async def rename_list(request: web.Request) -> web.Response:
    list_id = request.match_info["list_id"]
    name = str((await _json_body(request)).get("name") or "").strip()
    if not name:
        raise ValidationError("List name is required")
    return _update(request, lambda c: ops.rename_list(c, list_id, name))


async def delete_list(request: web.Request) -> web.Response:
    list_id = request.match_info["list_id"]
    return _update(request, lambda c: ops.delete_list(c, list_id))


async def set_active_list(request: web.Request) -> web.Response:
    list_id = str((await _json_body(request)).get("id") or "")
    if not list_id:
        raise ValidationError("List id is required")
    return _update(request, lambda c: ops.set_active_list(c, list_id))


def _recommendation(raw: Any) -> Recommendation:
    rec = Recommendation.from_wire(raw)
    if not rec.source_url:
        raise ValidationError("Recommendation sourceUrl is required")
    return rec


async def add_recommendation(request: web.Request) -> web.Response:
    hook = request.match_info["hook"]
    body = await _json_body(request)
    rec = _recommendation(body.get("recommendation", body))
    return _update(request, lambda c: ops.add_recommendation(c, hook, rec))


async def remove_recommendation(request: web.Request) -> web.Response:
    hook = request.match_info["hook"]
    source_url = request.query.get("sourceUrl")
    if not source_url:
        raise ValidationError("sourceUrl parameter is required")
    return _update(request, lambda c: ops.remove_recommendation(c, hook, source_url))


async def move_recommendation(request: web.Request) -> web.Response:
    body = await _json_body(request)
    from_hook = str(body.get("fromHook") or "")
    to_hook = str(body.get("toHook") or "")
    if not from_hook or not to_hook:
        raise ValidationError("fromHook and toHook are required")
    rec = _recommendation(body.get("recommendation"))
    return _update(request, lambda c: ops.move_recommendation(c, from_hook, to_hook, rec))


async def reorder_recommendations(request: web.Request) -> web.Response:
    body = await _json_body(request)
    hook = str(body.get("hook") or "")
    try:
        old_index = int(body["oldIndex"])
        new_index = int(body["newIndex"])
    except (KeyError, TypeError, ValueError) as error:
        raise ValidationError("oldIndex and newIndex must be integers") from error
    return _update(
        request, lambda c: ops.reorder_recommendations(c, hook, old_index, new_index)
    )


async def import_setup(request: web.Request) -> web.Response:
    body = await _json_body(request)
    # Validate before touching the store.
    ops.import_setup(ListCollection(lists=()), body)
    return _update(request, lambda c: ops.import_setup(c, body))


async def export_setup(request: web.Request) -> web.Response:
    collection = db.load_collection(request.app[DB_PATH_KEY])
    return web.json_response(ops.export_setup(collection))


def create_app(
    base_dir: Optional[str] = None,
    db_path: Optional[str] = None,
    client: Optional[Fetcher] = None,
    transcode: Transcode = transcode_to_mp3,
) -> web.Application:
    """
    Build the web application.

    Args:
        base_dir: Sound library root; defaults to `HOOKSOUNDS_SOUNDS_DIR` or `~/.claude/sounds`.
        db_path: List store location; defaults to `HOOKSOUNDS_DB_PATH`.
        client: Fetcher to use instead of an aiohttp-backed SoundClient.
        transcode: OGG to MP3 converter.
    """
    app = web.Application(middlewares=[error_middleware])
    app[DB_PATH_KEY] = db_path
    app[TRANSCODE_KEY] = transcode

    async def client_ctx(app: web.Application) -> AsyncIterator[None]:
        if client is not None:
            app[CLIENT_KEY] = client
            app[LIBRARY_KEY] = SoundLibrary(client, base_dir, transcode)
            yield
            return
        async with ClientSession() as session:
            sound_client = SoundClient(session)
            app[CLIENT_KEY] = sound_client
            app[LIBRARY_KEY] = SoundLibrary(sound_client, base_dir, transcode)
            yield

    app.cleanup_ctx.append(client_ctx)
    app.add_routes(
        [
            web.get("/api/health", health),
            web.get("/api/audio", audio_proxy),
            web.get("/api/download", single_download),
            web.post("/api/download-batch", batch_download),
            web.post("/api/save-to-sounds", save_to_sounds),
            web.post("/api/save-to-sounds-all", save_to_sounds_all),
            web.get("/api/sounds-info", sounds_info),
            web.post("/api/sync", sync_active_list),
            web.get("/api/lists", get_lists),
            web.post("/api/lists", create_list),
            web.put("/api/lists/active", set_active_list),
            web.get("/api/lists/active/export", export_setup),
            web.post("/api/lists/active/import", import_setup),
            web.get("/api/lists/active/archive", active_list_archive),
            web.post("/api/lists/active/move", move_recommendation),
            web.post("/api/lists/active/reorder", reorder_recommendations),
            web.post("/api/lists/active/hooks/{hook}/recommendations", add_recommendation),
            web.delete("/api/lists/active/hooks/{hook}/recommendations", remove_recommendation),
            web.patch("/api/lists/{list_id}", rename_list),
            web.delete("/api/lists/{list_id}", delete_list),
        ]
    )
    return app


def run_server(host: str = SERVER_HOST, port: int = SERVER_PORT) -> None:
    """Serve until interrupted."""
    echo(f"[*] Serving on http://{host}:{port}")
    web.run_app(create_app(), host=host, port=port, print=None)
