"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration for the sanity check harness, with environment
variable overrides and typed views for each component.

Features:
    - Built-in defaults merged with config/config.yaml
    - Environment variable override (SANITY_APP_PORT overrides app.port)
    - Dot notation path access
    - Typed, immutable per-component configuration objects

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import copy
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import yaml
from loguru import logger


# Default configuration file path
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Prefix for environment variable overrides
ENV_PREFIX = "SANITY_"

SUPPORTED_BACKENDS = ("webdriver", "cdp")

# Driver command and endpoint per backend, used when not configured explicitly
BACKEND_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "webdriver": {
        "command": ["chromedriver", "--port={driver_port}"],
        "endpoint": "http://127.0.0.1:9515/",
    },
    "cdp": {
        "command": [
            "google-chrome",
            "--headless=new",
            "--remote-debugging-port={driver_port}",
            "--user-data-dir={profile_dir}",
        ],
        "endpoint": "http://127.0.0.1:9222",
    },
}

_DEFAULTS: Dict[str, Any] = {
    "app": {
        "command": ["pub", "serve", "--port", "{port}"],
        "host": "localhost",
        "port": 8123,
        "path": "/",
    },
    "driver": {
        "backend": "webdriver",
        "command": None,
        "endpoint": None,
        "capabilities": {"browserName": "chrome"},
        "connect_timeout": 10.0,
        "connect_interval": 0.5,
        "request_timeout": 30.0,
        "install_hint": None,
    },
    "readiness": {
        "anchor_selector": "material-button",
        "interval": 1.0,
        "timeout": 300.0,
    },
    "scenarios": {
        "transition_timeout": 2.0,
        "poll_interval": 0.05,
    },
    "screenshot": {
        "filename": "screenshot.png",
    },
    "process": {
        "kill_timeout": 5.0,
    },
    "logging": {
        "level": "INFO",
        "format": "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        "file": None,
    },
}


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merges two dictionaries, with override taking precedence."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Values set at runtime via set() (command line flags)
        2. Environment variables (SANITY_APP_PORT)
        3. YAML configuration file
        4. Built-in defaults

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("app.port")
        8123

    Environment Variable Mapping:
        - app.port -> SANITY_APP_PORT
        - driver.endpoint -> SANITY_DRIVER_ENDPOINT
        - readiness.timeout -> SANITY_READINESS_TIMEOUT
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._overrides: Dict[str, Any] = {}
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """Load configuration from YAML file on top of the defaults."""
        self._config = copy.deepcopy(_DEFAULTS)

        if not self._config_path.exists():
            logger.debug(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {self._config_path}"
            )

        self._config = _deep_merge(self._config, file_config)
        logger.debug(f"Loaded configuration from: {self._config_path}")

    @property
    def config_path(self) -> Path:
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Runtime overrides win, then environment variables, then YAML config,
        then default.

        Args:
            key: Dot-notation path (e.g., "app.port")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if key in self._overrides:
            return self._overrides[key]

        value = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                break

        env_key = ENV_PREFIX + key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None:
            reference = value if value is not None else default
            return self._convert_type(env_value, reference)

        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime, above every other source."""
        self._overrides[key] = value

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if value.strip().lower() in ("null", "none"):
            return None

        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value
        if isinstance(reference, (list, tuple)):
            return shlex.split(value)
        if isinstance(reference, dict):
            try:
                parsed = yaml.safe_load(value)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid mapping in environment: {e}") from e
            return parsed if isinstance(parsed, dict) else value

        return value

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        cls._instance = None


# =============================================================================
# Typed configuration
# =============================================================================

def _as_float(key: str, value: Any, allow_none: bool = False) -> Optional[float]:
    if value is None and allow_none:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from e
    if number <= 0:
        if allow_none:
            return None
        raise ConfigurationError(f"{key} must be positive, got {value!r}")
    return number


def _as_command(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = shlex.split(value)
    if not value or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{key} must be a non-empty command list, got {value!r}")
    return tuple(str(part) for part in value)


@dataclass(frozen=True)
class AppConfig:
    """Application server settings."""
    command: Tuple[str, ...] = tuple(_DEFAULTS["app"]["command"])
    host: str = "localhost"
    port: int = 8123
    path: str = "/"

    @property
    def url(self) -> str:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"http://{self.host}:{self.port}{path}"

    def resolved_command(self) -> List[str]:
        return [part.format(port=self.port) for part in self.command]


@dataclass(frozen=True)
class DriverConfig:
    """Automation driver settings."""
    backend: str = "webdriver"
    command: Tuple[str, ...] = tuple(BACKEND_DEFAULTS["webdriver"]["command"])
    endpoint: str = BACKEND_DEFAULTS["webdriver"]["endpoint"]
    capabilities: Dict[str, Any] = field(default_factory=lambda: {"browserName": "chrome"})
    connect_timeout: float = 10.0
    connect_interval: float = 0.5
    request_timeout: float = 30.0
    install_hint: Optional[str] = None

    @property
    def port(self) -> Optional[int]:
        return urlparse(self.endpoint).port

    @property
    def needs_profile_dir(self) -> bool:
        return any("{profile_dir}" in part for part in self.command)

    def resolved_command(self, profile_dir: Optional[str] = None) -> List[str]:
        """
        Fill in {driver_port} and, when the command uses it, {profile_dir}.

        Raises:
            ValueError: If the command needs a profile directory and none is given
        """
        if self.needs_profile_dir and profile_dir is None:
            raise ValueError("driver.command uses {profile_dir} but no directory was given")
        return [
            part.format(driver_port=self.port, profile_dir=profile_dir)
            for part in self.command
        ]


@dataclass(frozen=True)
class ReadinessConfig:
    """Readiness poll settings. A timeout of None waits indefinitely."""
    anchor_selector: str = "material-button"
    interval: float = 1.0
    timeout: Optional[float] = 300.0


@dataclass(frozen=True)
class ScenarioConfig:
    transition_timeout: float = 2.0
    poll_interval: float = 0.05


@dataclass(frozen=True)
class HarnessConfig:
    """Complete, validated configuration for one sanity check run."""
    app: AppConfig = field(default_factory=AppConfig)
    driver: DriverConfig = field(default_factory=DriverConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    scenarios: ScenarioConfig = field(default_factory=ScenarioConfig)
    screenshot_path: Path = Path("screenshot.png")
    kill_timeout: float = 5.0

    @classmethod
    def from_loader(cls, loader: Optional[ConfigLoader] = None) -> "HarnessConfig":
        """
        Build typed configuration from a ConfigLoader.

        Raises:
            ConfigurationError: If any value is missing or malformed
        """
        if loader is None:
            loader = ConfigLoader()

        backend = str(loader.get("driver.backend", "webdriver")).lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"driver.backend must be one of {SUPPORTED_BACKENDS}, got {backend!r}"
            )
        backend_defaults = BACKEND_DEFAULTS[backend]

        try:
            port = int(loader.get("app.port", 8123))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"app.port must be an integer: {e}") from e
        if not 0 < port < 65536:
            raise ConfigurationError(f"app.port out of range: {port}")

        app = AppConfig(
            command=_as_command("app.command", loader.get("app.command")),
            host=str(loader.get("app.host", "localhost")),
            port=port,
            path=str(loader.get("app.path", "/")),
        )

        endpoint = loader.get("driver.endpoint") or backend_defaults["endpoint"]
        if not urlparse(endpoint).scheme or urlparse(endpoint).port is None:
            raise ConfigurationError(
                f"driver.endpoint must be an absolute URL with a port, got {endpoint!r}"
            )

        capabilities = loader.get("driver.capabilities") or {}
        if not isinstance(capabilities, dict):
            raise ConfigurationError("driver.capabilities must be a mapping")

        driver = DriverConfig(
            backend=backend,
            command=_as_command(
                "driver.command",
                loader.get("driver.command") or backend_defaults["command"],
            ),
            endpoint=endpoint,
            capabilities=dict(capabilities),
            connect_timeout=_as_float("driver.connect_timeout", loader.get("driver.connect_timeout", 10.0)),
            connect_interval=_as_float("driver.connect_interval", loader.get("driver.connect_interval", 0.5)),
            request_timeout=_as_float("driver.request_timeout", loader.get("driver.request_timeout", 30.0)),
            install_hint=loader.get("driver.install_hint"),
        )

        readiness = ReadinessConfig(
            anchor_selector=str(loader.get("readiness.anchor_selector", "material-button")),
            interval=_as_float("readiness.interval", loader.get("readiness.interval", 1.0)),
            timeout=_as_float("readiness.timeout", loader.get("readiness.timeout"), allow_none=True),
        )

        scenarios = ScenarioConfig(
            transition_timeout=_as_float(
                "scenarios.transition_timeout", loader.get("scenarios.transition_timeout", 2.0)
            ),
            poll_interval=_as_float("scenarios.poll_interval", loader.get("scenarios.poll_interval", 0.05)),
        )

        return cls(
            app=app,
            driver=driver,
            readiness=readiness,
            scenarios=scenarios,
            screenshot_path=Path(loader.get("screenshot.filename", "screenshot.png")),
            kill_timeout=_as_float("process.kill_timeout", loader.get("process.kill_timeout", 5.0)),
        )


__all__ = [
    "AppConfig",
    "ConfigLoader",
    "ConfigurationError",
    "DriverConfig",
    "HarnessConfig",
    "ReadinessConfig",
    "ScenarioConfig",
    "SUPPORTED_BACKENDS",
]
