from functools import lru_cache

from floatnotes_api.config import SyncConfigStore, load_settings
from floatnotes_api.images import ImageStore
from floatnotes_api.preview.server import LocalPreviewServer
from floatnotes_api.redaction import SecretFilter
from floatnotes_api.sync.manager import SyncManager
from floatnotes_api.viewer.generator import WebViewerGenerator

@lru_cache()
def get_settings():
    return load_settings()

@lru_cache()
def get_secret_filter():
    return SecretFilter()

@lru_cache()
def get_config_store():
    settings = get_settings()
    return SyncConfigStore(settings.config_path)

@lru_cache()
def get_sync_manager():
    return SyncManager(get_config_store(), get_settings(), get_secret_filter())

@lru_cache()
def get_viewer():
    return WebViewerGenerator()

@lru_cache()
def get_image_store():
    return ImageStore(get_settings().images_dir)

@lru_cache()
def get_preview_server():
    settings = get_settings()
    return LocalPreviewServer(get_viewer(), host=settings.preview_host, port=settings.preview_port)

def clear_caches():
    for getter in (
        get_settings,
        get_secret_filter,
        get_config_store,
        get_sync_manager,
        get_viewer,
        get_image_store,
        get_preview_server,
    ):
        getter.cache_clear()
