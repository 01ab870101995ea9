from __future__ import annotations

import dataclasses
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml

from floatnotes_api.util import atomic_write_text

ProviderKind = Literal["none", "folder"]
PROVIDER_KINDS: tuple[str, ...] = ("none", "folder")

logger = logging.getLogger("floatnotes.config")


@dataclass(frozen=True)
class Settings:
    home_dir: Path
    preview_host: str
    preview_port: int
    hook_timeout_s: float
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool
    log_level: str

    @property
    def config_path(self) -> Path:
        return self.home_dir / "config.yaml"

    @property
    def images_dir(self) -> Path:
        return self.home_dir / "images"


def load_settings() -> Settings:
    home_dir = Path(os.environ.get("FLOATNOTES_HOME", "~/.floatnotes")).expanduser().resolve()
    preview_host = os.environ.get("PREVIEW_HOST", "127.0.0.1")
    preview_port = int(os.environ.get("PREVIEW_PORT", "8765"))
    hook_timeout_s = float(os.environ.get("HOOK_TIMEOUT_S", "60"))
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    return Settings(
        home_dir=home_dir,
        preview_host=preview_host,
        preview_port=preview_port,
        hook_timeout_s=hook_timeout_s,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
        log_level=log_level,
    )


@dataclass(frozen=True)
class SyncConfig:
    provider: ProviderKind = "none"
    folder_path: str | None = None
    hook_path: str | None = None
    base_url: str | None = None
    filter_secrets: bool = True

    @classmethod
    def from_mapping(cls, data: dict) -> SyncConfig:
        provider = data.get("provider", "none")
        if provider not in PROVIDER_KINDS:
            raise ValueError(f"unknown sync provider: {provider!r}")

        def opt_str(key: str) -> str | None:
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        return cls(
            provider=provider,
            folder_path=opt_str("folder_path"),
            hook_path=opt_str("hook_path"),
            base_url=opt_str("base_url"),
            filter_secrets=bool(data.get("filter_secrets", True)),
        )


class SyncConfigStore:
    """Sync settings persisted as YAML; every mutation is written immediately."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._config = self._load()

    def _load(self) -> SyncConfig:
        if not self.path.exists():
            return SyncConfig()
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            if not isinstance(raw, dict):
                raise ValueError("config_not_mapping")
            sync = raw.get("sync", {})
            if not isinstance(sync, dict):
                raise ValueError("sync_not_mapping")
            return SyncConfig.from_mapping(sync)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("config_load_failed", extra={"path": str(self.path), "error": str(e)})
            return SyncConfig()

    def _save(self, config: SyncConfig) -> None:
        text = yaml.safe_dump({"sync": dataclasses.asdict(config)}, sort_keys=False)
        atomic_write_text(self.path, text)

    @property
    def config(self) -> SyncConfig:
        return self._config

    def update(self, **changes) -> SyncConfig:
        with self._lock:
            merged = {**dataclasses.asdict(self._config), **changes}
            updated = SyncConfig.from_mapping(merged)
            self._save(updated)
            self._config = updated
            logger.info("config_saved", extra={"path": str(self.path), "provider": updated.provider})
            return updated
