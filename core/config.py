"""
Configuration management for Skin Market Watch.
Handles tunable settings (JSON on disk) and marketplace credentials (environment).
"""

import json
import logging
import copy
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Dict, Any, List, Mapping

from dotenv import load_dotenv

from core.constants import (
    API_TIMEOUT_MARKET,
    DEFAULT_BRL_RATE,
    EXCHANGE_RATE_REFRESH_INTERVAL,
    HISTORY_MAX_POINTS,
    SEARCH_MAX_WORKERS,
    SKIN_CATALOG_URL,
)
from core.auth_token import is_valid_secret
from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variables holding credentials. Never written to the config file.
ENV_BITSKINS_API_KEY = "BITSKINS_API_KEY"
ENV_BITSKINS_SECRET = "BITSKINS_SECRET"
ENV_CSFLOAT_API_KEY = "CSFLOAT_API_KEY"
ENV_STEAM_LOGIN_SECURE = "STEAM_LOGIN_SECURE"


def get_config_dir() -> Path:
    """
    Get the application config directory.

    Returns:
        Path to the config directory (~/.skin_market_watch/)
    """
    config_dir = Path.home() / ".skin_market_watch"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


class Config:
    """
    Application configuration.

    Key ideas:
    - Tunables (timeouts, worker counts, refresh intervals) live in a JSON
      file merged over DEFAULT_CONFIG.
    - Credentials come from the environment (a local .env is loaded first)
      and are never persisted by save().
    """

    # NOTE: This structure is treated as immutable. Always use
    # _default_config_deepcopy() when you need a fresh copy of defaults.
    DEFAULT_CONFIG: Dict[str, Any] = {
        "api": {
            # Per-call timeout for marketplace requests (seconds)
            "timeout_seconds": API_TIMEOUT_MARKET,
        },
        "search": {
            # Concurrent peer-listing lookups per search
            "max_workers": SEARCH_MAX_WORKERS,
        },
        "history": {
            # Consumer marketplace points kept (most recent)
            "max_points": HISTORY_MAX_POINTS,
        },
        "exchange_rate": {
            # Served until the first successful refresh
            "default_brl": str(DEFAULT_BRL_RATE),
            "refresh_interval_seconds": EXCHANGE_RATE_REFRESH_INTERVAL,
        },
        "images": {
            "catalog_url": SKIN_CATALOG_URL,
            "load_on_startup": True,
        },
    }

    def __init__(
        self,
        config_file: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize configuration.

        Args:
            config_file: Optional path to config JSON file. When omitted,
                         ~/.skin_market_watch/config.json is used.
            env: Mapping to read credentials from. When omitted, a local
                 .env file is loaded and os.environ is used.
        """
        self.config_file: Path = self._resolve_config_path(config_file)
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        if env is None:
            load_dotenv()
            env = os.environ
        self._env: Mapping[str, str] = env

        self.data: Dict[str, Any] = self._load()
        logger.info(f"Config loaded from {self.config_file}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_config_path(config_file: Optional[Path]) -> Path:
        if config_file is not None:
            return config_file
        return get_config_dir() / "config.json"

    def _load(self) -> Dict[str, Any]:
        """Load configuration from JSON file, merging with defaults."""
        if self.config_file.exists():
            try:
                with self.config_file.open("r", encoding="utf-8") as f:
                    raw = json.load(f)

                merged = self._merge_with_defaults(raw)
                logger.info("Configuration loaded successfully")
                return merged
            except (OSError, ValueError) as exc:
                logger.error(f"Failed to load config: {exc}. Using defaults.")
                return self._default_config_deepcopy()
        else:
            logger.info("No config file found, using defaults")
            return self._default_config_deepcopy()

    @classmethod
    def _default_config_deepcopy(cls) -> Dict[str, Any]:
        return copy.deepcopy(cls.DEFAULT_CONFIG)

    def _merge_with_defaults(self, user_config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge user config with defaults so new keys appear without
        discarding user-provided values.
        """
        merged = self._default_config_deepcopy()

        for key, value in user_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key].update(value)
            else:
                merged[key] = value

        return merged

    def _env_value(self, name: str) -> str:
        return str(self._env.get(name, "") or "").strip()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Persist tunables to the config file. Credentials are not included."""
        try:
            with self.config_file.open("w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)
            logger.info("Configuration saved")
        except OSError as exc:
            logger.error(f"Failed to save config: {exc}")

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    @property
    def bitskins_api_key(self) -> str:
        return self._env_value(ENV_BITSKINS_API_KEY)

    @property
    def bitskins_secret(self) -> str:
        return self._env_value(ENV_BITSKINS_SECRET)

    @property
    def csfloat_api_key(self) -> Optional[str]:
        return self._env_value(ENV_CSFLOAT_API_KEY) or None

    @property
    def steam_login_secure(self) -> Optional[str]:
        return self._env_value(ENV_STEAM_LOGIN_SECURE) or None

    def validate(self) -> List[str]:
        """
        Check credentials before serving.

        Returns:
            Names of optional providers that are disabled.

        Raises:
            ConfigurationError: BitSkins key or secret is missing,
                or the secret is not valid base32.
        """
        missing = [
            name for name, value in (
                (ENV_BITSKINS_API_KEY, self.bitskins_api_key),
                (ENV_BITSKINS_SECRET, self.bitskins_secret),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing mandatory credentials: {', '.join(missing)}. "
                "Set them in the environment or a .env file."
            )
        if not is_valid_secret(self.bitskins_secret):
            raise ConfigurationError(f"{ENV_BITSKINS_SECRET} is not a valid base32 TOTP secret")

        disabled: List[str] = []
        if not self.csfloat_api_key:
            logger.warning(f"{ENV_CSFLOAT_API_KEY} not set: search results will only carry BitSkins prices")
            disabled.append("csfloat")
        if not self.steam_login_secure:
            logger.warning(f"{ENV_STEAM_LOGIN_SECURE} not set: Steam history fallback disabled")
            disabled.append("steam")
        return disabled

    # ------------------------------------------------------------------
    # Tunables
    # ------------------------------------------------------------------

    @property
    def api_timeout(self) -> float:
        """Per-call timeout in seconds. Guardrails: [1..120]."""
        api = self.data.get("api", {}) or {}
        try:
            value = float(api.get("timeout_seconds", API_TIMEOUT_MARKET))
        except (TypeError, ValueError):
            value = float(API_TIMEOUT_MARKET)
        return max(1.0, min(120.0, value))

    @api_timeout.setter
    def api_timeout(self, value: float) -> None:
        self.data.setdefault("api", {})["timeout_seconds"] = max(1.0, min(120.0, float(value)))
        self.save()

    @property
    def search_max_workers(self) -> int:
        """Peer lookup threads per search. Guardrails: [1..32]."""
        search = self.data.get("search", {}) or {}
        try:
            value = int(search.get("max_workers", SEARCH_MAX_WORKERS))
        except (TypeError, ValueError):
            value = SEARCH_MAX_WORKERS
        return max(1, min(32, value))

    @property
    def history_max_points(self) -> int:
        history = self.data.get("history", {}) or {}
        try:
            value = int(history.get("max_points", HISTORY_MAX_POINTS))
        except (TypeError, ValueError):
            value = HISTORY_MAX_POINTS
        return max(1, value)

    @property
    def default_exchange_rate(self) -> Decimal:
        fx = self.data.get("exchange_rate", {}) or {}
        try:
            value = Decimal(str(fx.get("default_brl", DEFAULT_BRL_RATE)))
        except InvalidOperation:
            value = DEFAULT_BRL_RATE
        return value if value > 0 else DEFAULT_BRL_RATE

    @property
    def exchange_rate_refresh_interval(self) -> int:
        """Seconds between rate refreshes. Guardrails: [60..86400]."""
        fx = self.data.get("exchange_rate", {}) or {}
        try:
            value = int(fx.get("refresh_interval_seconds", EXCHANGE_RATE_REFRESH_INTERVAL))
        except (TypeError, ValueError):
            value = EXCHANGE_RATE_REFRESH_INTERVAL
        return max(60, min(86400, value))

    @property
    def catalog_url(self) -> str:
        images = self.data.get("images", {}) or {}
        return str(images.get("catalog_url") or SKIN_CATALOG_URL)

    @property
    def load_catalog_on_startup(self) -> bool:
        images = self.data.get("images", {}) or {}
        return bool(images.get("load_on_startup", True))

    def __repr__(self) -> str:
        return f"Config(file={self.config_file})"
