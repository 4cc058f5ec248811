"""
Application settings and configuration paths.
"""

from pathlib import Path
from typing import Optional
import os
import json


class Settings:
    """Application settings."""

    # Config directory (XDG compliant)
    CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "vrb"

    # Config file path
    CONFIG_FILE = CONFIG_DIR / "config.json"

    ENV_PREFIX = "VRB_"

    # setting name -> default
    DEFAULTS = {
        "redis_url": "redis://127.0.0.1/",
        "api_url": "http://127.0.0.1:8888",
        "server_host": "0.0.0.0",
        "server_port": 8888,
        "run_duration": 5.0,            # seconds of GPU profiling per run
        "target_frame_time": 13.0,      # ms; does this include TimeWarp + guardian?
        "app_package": "rust.the_station",
        "app_activity": "android.app.NativeActivity",
        "apk_path": None,               # install skipped when unset
        "build_dir": None,              # `cargo apk build` skipped when unset
        "log_level": "WARNING",
    }

    def _load_config(self) -> dict:
        """Load config from file."""
        if self.CONFIG_FILE.exists():
            try:
                with open(self.CONFIG_FILE) as f:
                    return json.load(f)
            except (json.JSONDecodeError, IOError):
                pass
        return {}

    def _save_config(self, config: dict) -> None:
        """Save config to file."""
        self.ensure_config_dir()
        with open(self.CONFIG_FILE, "w") as f:
            json.dump(config, f, indent=2)

    def get(self, name: str):
        """Get a setting: env var > config file > default."""
        if name not in self.DEFAULTS:
            raise KeyError(f"Unknown setting: {name}")
        default = self.DEFAULTS[name]

        # 1. Environment variable has highest priority
        raw = os.environ.get(self.ENV_PREFIX + name.upper())
        if raw is None:
            # 2. Config file
            raw = self._load_config().get(name)
        if raw is None:
            # 3. Default
            return default

        return self._coerce(name, raw)

    def _coerce(self, name: str, raw):
        """Convert env/config values to the type of the default."""
        default = self.DEFAULTS[name]
        try:
            if isinstance(default, float):
                return float(raw)
            if isinstance(default, int):
                return int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value for {name}: {raw!r}") from None
        return str(raw)

    def set(self, name: str, value: str) -> None:
        """Set a setting persistently in config file."""
        if name not in self.DEFAULTS:
            raise KeyError(f"Unknown setting: {name}")
        config = self._load_config()
        config[name] = self._coerce(name, value)
        self._save_config(config)

    def as_dict(self) -> dict:
        """Resolved value of every setting."""
        return {name: self.get(name) for name in self.DEFAULTS}

    @property
    def REDIS_URL(self) -> str:
        return self.get("redis_url")

    @property
    def API_URL(self) -> str:
        return self.get("api_url").rstrip("/")

    @property
    def SERVER_HOST(self) -> str:
        return self.get("server_host")

    @property
    def SERVER_PORT(self) -> int:
        return self.get("server_port")

    @property
    def RUN_DURATION(self) -> float:
        return self.get("run_duration")

    @property
    def TARGET_FRAME_TIME(self) -> float:
        return self.get("target_frame_time")

    @property
    def APP_PACKAGE(self) -> str:
        return self.get("app_package")

    @property
    def APP_ACTIVITY(self) -> str:
        return self.get("app_activity")

    @property
    def APK_PATH(self) -> Optional[Path]:
        value = self.get("apk_path")
        return Path(value) if value else None

    @property
    def BUILD_DIR(self) -> Optional[Path]:
        value = self.get("build_dir")
        return Path(value) if value else None

    @property
    def LOG_LEVEL(self) -> str:
        return self.get("log_level").upper()

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure config directory exists and return path."""
        cls.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        return cls.CONFIG_DIR


# Singleton instance
settings = Settings()
