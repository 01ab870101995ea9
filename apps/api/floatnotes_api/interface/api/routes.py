import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from floatnotes_api.config import Settings
from floatnotes_api.dependencies import (
    get_image_store,
    get_preview_server,
    get_secret_filter,
    get_settings,
    get_sync_manager,
    get_viewer,
)
from floatnotes_api.domain.exceptions import (
    DeleteFailed,
    FolderNotAccessible,
    FolderNotConfigured,
    HookFailed,
    HookTimeout,
    PathError,
    PreviewStartFailed,
    SyncError,
    WriteFailed,
)
from floatnotes_api.domain.schemas import (
    CloudLocationOut,
    ExportIn,
    ExportOut,
    HookVerifyOut,
    ImageSyncIn,
    ImageSyncOut,
    NoteRecord,
    PreviewOut,
    SecretScanIn,
    SecretScanOut,
    SyncConfigIn,
    SyncConfigOut,
    SyncStatusOut,
)
from floatnotes_api.images import ImageContext, ImageStore, hash_file, resolve_image_url
from floatnotes_api.preview.server import LocalPreviewServer
from floatnotes_api.redaction import SecretFilter
from floatnotes_api.sync.folder import FolderSyncProvider
from floatnotes_api.sync.locations import detect_locations, display_path
from floatnotes_api.sync.manager import SyncManager
from floatnotes_api.viewer.generator import WebViewerGenerator

router = APIRouter()
logger = logging.getLogger("floatnotes.api")


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _http_error(e: SyncError | PathError) -> HTTPException:
    if isinstance(e, PathError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, FolderNotConfigured):
        return HTTPException(status_code=409, detail="sync_folder_not_configured")
    if isinstance(e, FolderNotAccessible):
        return HTTPException(status_code=503, detail=f"sync_folder_not_accessible: {e.path}")
    if isinstance(e, HookTimeout):
        return HTTPException(status_code=504, detail=f"hook_timeout: {e.detail}")
    if isinstance(e, HookFailed):
        return HTTPException(status_code=502, detail=f"hook_failed: {e.detail}")
    if isinstance(e, WriteFailed):
        return HTTPException(status_code=500, detail=f"write_failed: {e.path.name}")
    if isinstance(e, DeleteFailed):
        return HTTPException(status_code=500, detail=f"delete_failed: {e.path.name}")
    return HTTPException(status_code=500, detail="sync_error")


def _status_out(manager: SyncManager) -> SyncStatusOut:
    provider = manager.provider
    status = provider.status
    return SyncStatusOut(
        provider=manager.config.provider,
        enabled=provider.enabled,
        status=status.state.value,
        detail=status.detail,
        display_text=status.display_text,
        healthy=status.is_healthy,
    )


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/sync/config", response_model=SyncConfigOut)
def get_sync_config(manager: SyncManager = Depends(get_sync_manager)):
    return SyncConfigOut(**manager.config.__dict__)


@router.put("/sync/config", response_model=SyncConfigOut)
def update_sync_config(payload: SyncConfigIn, request: Request, manager: SyncManager = Depends(get_sync_manager)):
    try:
        updated = manager.update_config(**payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("sync_config_update", extra={"rid": _rid(request), "provider": updated.provider})
    return SyncConfigOut(**updated.__dict__)


@router.get("/sync/status", response_model=SyncStatusOut)
def sync_status(manager: SyncManager = Depends(get_sync_manager)):
    try:
        provider = manager.provider
        if isinstance(provider, FolderSyncProvider) and not provider.verify_access():
            raise FolderNotAccessible(provider.folder)
        return _status_out(manager)
    except (FolderNotConfigured, FolderNotAccessible) as e:
        return SyncStatusOut(
            provider=manager.config.provider,
            enabled=False,
            status="error",
            detail=str(e),
            display_text=f"Error: {e}",
            healthy=False,
        )


@router.get("/sync/hook/verify", response_model=HookVerifyOut)
def verify_hook(manager: SyncManager = Depends(get_sync_manager)):
    hook = manager.hook
    if hook is None:
        return HookVerifyOut(configured=False, executable=False)
    return HookVerifyOut(configured=True, executable=hook.verify(), path=str(hook.script_path))


@router.get("/sync/locations", response_model=list[CloudLocationOut])
def sync_locations():
    found = detect_locations()
    return [
        CloudLocationOut(
            kind=loc.kind,
            name=loc.name,
            path=str(loc.path),
            display_path=display_path(loc.path),
            description=loc.description,
            recommended=i == 0,
        )
        for i, loc in enumerate(found)
    ]


@router.post("/sync/notes", response_model=SyncStatusOut)
def sync_note(payload: NoteRecord, request: Request, manager: SyncManager = Depends(get_sync_manager)):
    try:
        manager.provider.sync_note(payload.to_note())
    except (SyncError, PathError) as e:
        logger.warning("note_sync_failed", extra={"rid": _rid(request), "id": payload.id, "error": str(e)})
        raise _http_error(e) from e
    logger.info("note_sync", extra={"rid": _rid(request), "id": payload.id})
    return _status_out(manager)


@router.delete("/sync/notes/{note_id}", response_model=SyncStatusOut)
def delete_synced_note(note_id: str, request: Request, manager: SyncManager = Depends(get_sync_manager)):
    try:
        manager.provider.delete_note(note_id)
    except (SyncError, PathError) as e:
        logger.warning("note_delete_failed", extra={"rid": _rid(request), "id": note_id, "error": str(e)})
        raise _http_error(e) from e
    logger.info("note_delete", extra={"rid": _rid(request), "id": note_id})
    return _status_out(manager)


@router.post("/sync/images", response_model=ImageSyncOut)
def sync_image(payload: ImageSyncIn, request: Request, manager: SyncManager = Depends(get_sync_manager)):
    local_path = Path(payload.local_path).expanduser()
    if not local_path.is_file():
        raise HTTPException(status_code=404, detail="image_not_found")
    image_hash = payload.hash or hash_file(local_path)
    try:
        url = manager.provider.sync_image(local_path, image_hash)
    except (SyncError, PathError) as e:
        logger.warning("image_sync_failed", extra={"rid": _rid(request), "hash": image_hash, "error": str(e)})
        raise _http_error(e) from e
    logger.info("image_sync", extra={"rid": _rid(request), "hash": image_hash})
    return ImageSyncOut(
        url=url,
        hash=image_hash,
        viewer_url=resolve_image_url(url, ImageContext.WEB_VIEWER, manager.config.base_url),
    )


@router.post("/images", response_model=ImageSyncOut)
async def save_image(
    request: Request,
    ext: str = Query("png", pattern=r"^[A-Za-z0-9]{1,8}$"),
    store: ImageStore = Depends(get_image_store),
    manager: SyncManager = Depends(get_sync_manager),
):
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="empty_image")
    path = store.save(data, ext)
    return ImageSyncOut(
        url=resolve_image_url(str(path), ImageContext.EDITOR),
        hash=path.stem,
        viewer_url=resolve_image_url(str(path), ImageContext.WEB_VIEWER, manager.config.base_url),
    )


@router.post("/sync/all", response_model=SyncStatusOut)
def sync_all(request: Request, manager: SyncManager = Depends(get_sync_manager)):
    try:
        manager.provider.sync_all()
    except SyncError as e:
        logger.warning("sync_all_failed", extra={"rid": _rid(request), "error": str(e)})
        raise _http_error(e) from e
    return _status_out(manager)


@router.post("/secrets/scan", response_model=SecretScanOut)
def scan_secrets(payload: SecretScanIn, secret_filter: SecretFilter = Depends(get_secret_filter)):
    return SecretScanOut(findings=secret_filter.detect(payload.content), filtered=secret_filter.filter(payload.content))


def _preview_out(server: LocalPreviewServer) -> PreviewOut:
    return PreviewOut(
        state=server.state.value,
        running=server.is_running,
        url=server.url,
        root=str(server.root) if server.root else None,
        last_error=server.last_error,
    )


def _preview_root(manager: SyncManager, settings: Settings) -> Path:
    if manager.config.folder_path:
        return Path(manager.config.folder_path).expanduser()
    return settings.home_dir


@router.get("/preview", response_model=PreviewOut)
def preview_status(server: LocalPreviewServer = Depends(get_preview_server)):
    return _preview_out(server)


@router.post("/preview/start", response_model=PreviewOut)
def preview_start(
    request: Request,
    server: LocalPreviewServer = Depends(get_preview_server),
    manager: SyncManager = Depends(get_sync_manager),
    settings: Settings = Depends(get_settings),
):
    try:
        server.start(_preview_root(manager, settings))
    except PreviewStartFailed as e:
        raise HTTPException(status_code=409, detail=f"preview_start_failed: {e.cause}") from e
    logger.info("preview_start", extra={"rid": _rid(request), "url": server.url})
    return _preview_out(server)


@router.post("/preview/stop", response_model=PreviewOut)
def preview_stop(server: LocalPreviewServer = Depends(get_preview_server)):
    server.stop()
    return _preview_out(server)


@router.post("/export/viewer", response_model=ExportOut)
def export_viewer(
    payload: ExportIn,
    request: Request,
    manager: SyncManager = Depends(get_sync_manager),
    viewer: WebViewerGenerator = Depends(get_viewer),
):
    try:
        provider: FolderSyncProvider = manager.folder_provider
        output = Path(payload.output_path).expanduser() if payload.output_path else None
        path, count = provider.export_viewer(viewer, output)
    except SyncError as e:
        raise _http_error(e) from e
    logger.info("viewer_export", extra={"rid": _rid(request), "path": str(path), "count": count})
    return ExportOut(output_path=str(path), note_count=count)
