"""
HTTP API.

Read-only endpoints over manifests and stored chunks, plus health checks.
"""

from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger

from cartridge.config.constants import DEFAULT_CHUNK_LIST_LIMIT
from cartridge.services.manifest_service import Manifest, ManifestService
from cartridge.services.reconstruction_service import ReconstructionService
from cartridge.utils.exceptions import ManifestNotFoundError, StorageError
from jobs.health import register_health_routes

MANIFESTS_KEY = web.AppKey("manifests", ManifestService)
RECONSTRUCTION_KEY = web.AppKey("reconstruction", ReconstructionService)
CORS_ORIGINS_KEY = web.AppKey("cors_origins", list)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

CORS_ALLOW_METHODS = "GET, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"


def _json_error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _int_param(request: web.Request, name: str, default: int) -> int:
    """Read an integer query parameter, falling back to default."""
    try:
        return int(request.query.get(name, default))
    except ValueError:
        return default


def _manifest(request: web.Request, required: bool = False) -> Manifest:
    name = request.query.get("manifest", "")
    if required and not name:
        raise web.HTTPBadRequest(
            text='{"error": "manifest parameter is required"}',
            content_type="application/json",
        )
    return request.app[MANIFESTS_KEY].get(name)


def _cors_headers(request: web.Request, response: web.StreamResponse) -> None:
    origins = request.app[CORS_ORIGINS_KEY]
    origin = request.headers.get("Origin")
    if "*" in origins:
        response.headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Vary"] = "Origin"
    else:
        return
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Answer preflight requests and add CORS headers to every response."""
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response(status=204)
    else:
        try:
            response = await handler(request)
        except web.HTTPException as e:
            _cors_headers(request, e)
            raise
    _cors_headers(request, response)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map service exceptions to JSON error responses."""
    try:
        return await handler(request)
    except ManifestNotFoundError as e:
        return _json_error(str(e), 404)
    except StorageError as e:
        logger.error(f"[API] {request.path}: {e}")
        return _json_error("storage unavailable", 500)


async def manifests_handler(request: web.Request) -> web.Response:
    """List available manifests."""
    return web.json_response(
        {"manifests": request.app[MANIFESTS_KEY].summaries()}
    )


async def manifest_handler(request: web.Request) -> web.Response:
    """Return one manifest (the first one when no name is given)."""
    manifest = request.app[MANIFESTS_KEY].get(request.query.get("name", ""))
    return web.json_response(manifest.to_json_dict())


async def status_handler(request: web.Request) -> web.Response:
    """Indexing progress for a manifest."""
    manifest = _manifest(request, required=True)
    status = await request.app[RECONSTRUCTION_KEY].status(manifest)
    return web.json_response(status)


async def chunks_handler(request: web.Request) -> web.Response:
    """Page through stored chunks of a manifest."""
    manifest = _manifest(request, required=True)
    items = await request.app[RECONSTRUCTION_KEY].list_chunks(
        manifest.game_id,
        from_index=_int_param(request, "from", 0),
        limit=_int_param(request, "limit", DEFAULT_CHUNK_LIST_LIMIT),
    )
    return web.json_response(
        {
            "game_id": manifest.game_id,
            "chunk_size": manifest.chunk_size,
            "items": items,
        }
    )


async def chunks_raw_handler(request: web.Request) -> web.Response:
    """Download the reconstructed artifact."""
    manifest = _manifest(request)
    blob = await request.app[RECONSTRUCTION_KEY].reconstruct(
        manifest.game_id, manifest.total_size
    )
    filename = manifest.filename.replace('"', "")
    return web.Response(
        body=blob,
        content_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def verify_handler(request: web.Request) -> web.Response:
    """Compare the reconstructed artifact with the manifest digest."""
    manifest = _manifest(request)
    result = await request.app[RECONSTRUCTION_KEY].verify(manifest)
    return web.json_response(result)


def create_app(
    manifests: ManifestService,
    reconstruction: ReconstructionService,
    cors_origins: list[str] | None = None,
) -> web.Application:
    """
    Build the API application.

    Health routes are registered too; their scheduler and indexer keys are
    set by the caller.

    Args:
        manifests: Manifest supplier
        reconstruction: Chunk query service
        cors_origins: Allowed origins (["*"] allows any)

    Returns:
        aiohttp application
    """
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[MANIFESTS_KEY] = manifests
    app[RECONSTRUCTION_KEY] = reconstruction
    app[CORS_ORIGINS_KEY] = cors_origins or ["*"]

    app.router.add_get("/api/manifests", manifests_handler)
    app.router.add_get("/api/manifest", manifest_handler)
    app.router.add_get("/api/status", status_handler)
    app.router.add_get("/api/chunks", chunks_handler)
    app.router.add_get("/api/chunks/raw", chunks_raw_handler)
    app.router.add_get("/api/verify", verify_handler)
    register_health_routes(app)

    return app
