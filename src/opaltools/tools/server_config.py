"""Deployment-configurable settings for the tool server.

Configuration can be loaded from:
1. YAML/JSON files in a config directory
2. Environment variables (for deployment)

Example usage:
    from opaltools.tools.server_config import load_server_config, configure_logging

    config = load_server_config(Path("config/server.yaml"))
    configure_logging(config.log_level)
    registry = build_default_registry(config)
"""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from opaltools.core.runtime import MAX_DURATION_DAYS

ENV_PREFIX = "OPAL_TOOLS_"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class ServerConfig:
    """Tool server configuration.

    Attributes:
        service_name: Name given to the tool registry.
        max_duration_days: Longest runtime estimate returned as a result.
        mask_failures: Return {"days": None} instead of an error when an
            estimate fails. Hides real input problems from the caller;
            off by default.
        log_level: Root logging level name.
    """

    service_name: str = "opal-experiment-tools"
    max_duration_days: int = MAX_DURATION_DAYS
    mask_failures: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if int(self.max_duration_days) < 1:
            raise ValueError(
                f"max_duration_days must be at least 1, got {self.max_duration_days}"
            )
        self.max_duration_days = int(self.max_duration_days)
        self.log_level = str(self.log_level).upper()

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def _import_yaml():
    try:
        import yaml
    except ImportError:
        raise ImportError(
            "PyYAML is required for YAML config files. "
            "Install with: pip install pyyaml"
        )
    return yaml


def _config_from_dict(data: Mapping) -> ServerConfig:
    known = {f.name for f in dataclasses.fields(ServerConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    return ServerConfig(**data)


def load_server_config(config_path: Path) -> ServerConfig:
    """Load server configuration from YAML or JSON file.

    Args:
        config_path: Path to configuration file (.yaml, .yml, or .json)

    Returns:
        ServerConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is not supported or keys are unknown
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        if config_path.suffix in (".yaml", ".yml"):
            yaml = _import_yaml()
            data = yaml.safe_load(f) or {}
        elif config_path.suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(
                f"Unsupported config format: {config_path.suffix}. "
                "Use .yaml, .yml, or .json"
            )

    return _config_from_dict(data)


def save_server_config(config: ServerConfig, config_path: Path) -> None:
    """Save server configuration to YAML or JSON file.

    Raises:
        ValueError: If file format is not supported
    """
    data = config.to_dict()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        if config_path.suffix in (".yaml", ".yml"):
            yaml = _import_yaml()
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        elif config_path.suffix == ".json":
            json.dump(data, f, indent=2)
        else:
            raise ValueError(
                f"Unsupported config format: {config_path.suffix}. "
                "Use .yaml, .yml, or .json"
            )


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Cannot interpret '{value}' as a boolean")


def config_from_env(
    base: Optional[ServerConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServerConfig:
    """Apply OPAL_TOOLS_* environment overrides to a configuration.

    Recognised variables: OPAL_TOOLS_SERVICE_NAME,
    OPAL_TOOLS_MAX_DURATION_DAYS, OPAL_TOOLS_MASK_FAILURES,
    OPAL_TOOLS_LOG_LEVEL.

    Args:
        base: Configuration to override. Uses defaults if None.
        environ: Mapping to read from. Uses os.environ if None.

    Returns:
        New ServerConfig with overrides applied.
    """
    environ = os.environ if environ is None else environ
    data = (base or ServerConfig()).to_dict()

    if (value := environ.get(f"{ENV_PREFIX}SERVICE_NAME")) is not None:
        data["service_name"] = value
    if (value := environ.get(f"{ENV_PREFIX}MAX_DURATION_DAYS")) is not None:
        data["max_duration_days"] = int(value)
    if (value := environ.get(f"{ENV_PREFIX}MASK_FAILURES")) is not None:
        data["mask_failures"] = _parse_bool(value)
    if (value := environ.get(f"{ENV_PREFIX}LOG_LEVEL")) is not None:
        data["log_level"] = value

    return ServerConfig(**data)


def get_default_config_dir() -> Path:
    """Get default configuration directory.

    Checks in order:
    1. OPAL_TOOLS_CONFIG_DIR environment variable
    2. ./config directory
    """
    if env_dir := os.environ.get(f"{ENV_PREFIX}CONFIG_DIR"):
        return Path(env_dir)
    return Path.cwd() / "config"


def load_default_config() -> ServerConfig:
    """Load server.yaml/server.json from the default directory, then env overrides.

    Falls back to defaults when no file exists.
    """
    config_dir = get_default_config_dir()
    base = None
    for name in ("server.yaml", "server.yml", "server.json"):
        path = config_dir / name
        if path.exists():
            base = load_server_config(path)
            break
    return config_from_env(base)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
