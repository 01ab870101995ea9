from __future__ import annotations

import logging
import threading
from pathlib import Path

from floatnotes_api.config import Settings, SyncConfig, SyncConfigStore
from floatnotes_api.domain.exceptions import FolderNotConfigured
from floatnotes_api.domain.ports import SyncProvider
from floatnotes_api.publishing.hook import PublishHook, create_publish_hook
from floatnotes_api.redaction import SecretFilter
from floatnotes_api.sync.folder import FolderSyncProvider
from floatnotes_api.sync.local_only import LocalOnlySyncProvider

logger = logging.getLogger("floatnotes.sync")


def build_sync_provider(config: SyncConfig, *, hook_timeout_s: float, secret_filter: SecretFilter) -> SyncProvider:
    if config.provider == "none":
        return LocalOnlySyncProvider()
    if not config.folder_path:
        raise FolderNotConfigured()
    return FolderSyncProvider(
        Path(config.folder_path).expanduser(),
        hook=create_publish_hook(config, timeout_s=hook_timeout_s),
        secret_filter=secret_filter if config.filter_secrets else None,
    )


class SyncManager:
    """Owns the sync configuration and the provider built from it.

    Settings actions go through `update_config`, which persists the change and
    swaps in a freshly built provider.
    """

    def __init__(self, store: SyncConfigStore, settings: Settings, secret_filter: SecretFilter) -> None:
        self.store = store
        self.settings = settings
        self.secret_filter = secret_filter
        self._lock = threading.Lock()
        self._provider: SyncProvider | None = None

    @property
    def config(self) -> SyncConfig:
        return self.store.config

    @property
    def provider(self) -> SyncProvider:
        """Current provider; raises FolderNotConfigured/FolderNotAccessible for a broken folder setup."""
        with self._lock:
            if self._provider is None:
                self._provider = build_sync_provider(
                    self.store.config,
                    hook_timeout_s=self.settings.hook_timeout_s,
                    secret_filter=self.secret_filter,
                )
            return self._provider

    @property
    def folder_provider(self) -> FolderSyncProvider:
        provider = self.provider
        if not isinstance(provider, FolderSyncProvider):
            raise FolderNotConfigured()
        return provider

    @property
    def hook(self) -> PublishHook | None:
        return create_publish_hook(self.store.config, timeout_s=self.settings.hook_timeout_s)

    def update_config(self, **changes) -> SyncConfig:
        with self._lock:
            updated = self.store.update(**changes)
            self._provider = None
        logger.info("sync_reconfigured", extra={"provider": updated.provider})
        return updated
