# app/services/myjkkn/config_store.py
"""
MyJKKN API configuration
Environment variables win; the JSON config file (saved from the admin UI)
fills in whatever the environment leaves unset.
"""
import json
import logging
import os
import threading
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional

from app.config import settings

logger = logging.getLogger(__name__)

CONFIG_KEY = "myjkkn_api_config"
CONFIG_CHANGED_EVENT = "myjkkn-config-changed"

DEFAULT_BASE_URL = "https://myadmin.jkkn.ac.in/api"


@dataclass
class ApiConfig:
    api_key: str = ""
    mock_mode: bool = False
    proxy_mode: bool = False
    base_url: str = DEFAULT_BASE_URL


@dataclass
class EnvOverrides:
    """Values taken from the environment; None means "not set"."""
    api_key: Optional[str] = None
    mock_mode: Optional[bool] = None
    proxy_mode: Optional[bool] = None
    base_url: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "EnvOverrides":
        return cls(
            api_key=settings.MYJKKN_API_KEY or None,
            mock_mode=settings.MYJKKN_MOCK_MODE,
            proxy_mode=settings.MYJKKN_PROXY_MODE,
            base_url=settings.MYJKKN_BASE_URL or None,
        )


class ConfigStore:
    def __init__(self, path: Optional[str] = None, env: Optional[EnvOverrides] = None):
        self.path = path
        self.env = env if env is not None else EnvOverrides()
        self._lock = threading.RLock()
        self._listeners: List[Callable[[ApiConfig], None]] = []
        self._mtime: Optional[float] = None
        # what the file holds, before environment overrides
        self._saved = ApiConfig()
        self.config = self._load()

    # ===============================
    # loading
    # ===============================
    def _read_file(self) -> Optional[dict]:
        if not self.path or not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                stored = json.load(f)
            self._mtime = os.path.getmtime(self.path)
            saved = stored.get(CONFIG_KEY) if isinstance(stored, dict) else None
            return saved if isinstance(saved, dict) else None
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load MyJKKN API configuration from {self.path}: {e}")
            return None

    def _with_env(self, saved: ApiConfig) -> ApiConfig:
        config = ApiConfig(**asdict(saved))
        if self.env.api_key is not None:
            config.api_key = self.env.api_key
        if self.env.mock_mode is not None:
            config.mock_mode = self.env.mock_mode
        if self.env.proxy_mode is not None:
            config.proxy_mode = self.env.proxy_mode
        if self.env.base_url is not None:
            config.base_url = self.env.base_url
        return config

    def _load(self) -> ApiConfig:
        saved_config = ApiConfig()
        saved = self._read_file()

        if saved is not None:
            if saved.get("apiKey"):
                saved_config.api_key = saved["apiKey"]
            # a saved config without an explicit mode starts in mock mode
            saved_config.mock_mode = bool(saved.get("mockMode", True))
            saved_config.proxy_mode = bool(saved.get("proxyMode", False))
            if saved.get("baseUrl"):
                saved_config.base_url = saved["baseUrl"]

        self._saved = saved_config
        config = self._with_env(saved_config)
        logger.debug(
            f"MyJKKN API configuration loaded: has_api_key={bool(config.api_key)}, "
            f"mock_mode={config.mock_mode}, proxy_mode={config.proxy_mode}"
        )
        return config

    @property
    def configured_via_env(self) -> bool:
        return bool(self.env.api_key) or self.env.mock_mode is True

    def get(self) -> ApiConfig:
        with self._lock:
            return ApiConfig(**asdict(self.config))

    def reload(self) -> ApiConfig:
        with self._lock:
            self.config = self._load()
            return self.get()

    def reload_if_changed(self) -> bool:
        """
        Re-read the config file when another process wrote it.
        Returns True (and notifies listeners) when a reload happened.
        """
        if not self.path or not os.path.exists(self.path):
            return False
        mtime = os.path.getmtime(self.path)
        if self._mtime is not None and mtime <= self._mtime:
            return False
        config = self.reload()
        self._emit(config)
        return True

    # ===============================
    # saving
    # ===============================
    def save(
        self,
        api_key: Optional[str] = None,
        mock_mode: Optional[bool] = None,
        proxy_mode: Optional[bool] = None,
        base_url: Optional[str] = None,
    ) -> ApiConfig:
        with self._lock:
            if api_key is not None:
                self._saved.api_key = api_key
            if mock_mode is not None:
                self._saved.mock_mode = mock_mode
            if proxy_mode is not None:
                self._saved.proxy_mode = proxy_mode
            if base_url is not None:
                self._saved.base_url = base_url

            if self.path:
                payload = {
                    CONFIG_KEY: {
                        "apiKey": self._saved.api_key,
                        "mockMode": self._saved.mock_mode,
                        "proxyMode": self._saved.proxy_mode,
                        "baseUrl": self._saved.base_url,
                    }
                }
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                self._mtime = os.path.getmtime(self.path)

            # environment values still win over what was just saved
            self.config = self._with_env(self._saved)
            config = self.get()

        logger.info(
            f"MyJKKN API configuration saved: mock_mode={config.mock_mode}, proxy_mode={config.proxy_mode}"
        )
        self._emit(config)
        return config

    # ===============================
    # change signal
    # ===============================
    def subscribe(self, callback: Callable[[ApiConfig], None]) -> None:
        with self._lock:
            if callback not in self._listeners:
                self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[ApiConfig], None]) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _emit(self, config: ApiConfig) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(config)
            except Exception as e:
                logger.error(f"{CONFIG_CHANGED_EVENT} listener failed: {e}", exc_info=True)
