"""
Process-wide configuration for govm.

The configuration is read once at process start and then passed explicitly
to the store, resolver, installer and dispatcher. Nothing in govm reads
configuration from module-level state.

Sources, in precedence order:
    1. Explicit overrides (the CLI's ``--root`` flag)
    2. Environment: ``GOVM_ROOT``
    3. Optional YAML file ``<root>/config.yaml``
    4. Built-in defaults

Example config.yaml:
    lock_timeout: 120
    max_retries: 5
    search_roots:
      - ~/src
      - ~/work
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from govm.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ROOT_ENV_VAR = "GOVM_ROOT"
VERSION_ENV_VAR = "GOVM_VERSION"
LOCAL_MARKER_NAME = ".go-version"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_CATALOG_URL = "https://go.dev/dl/?mode=json&include=all"
DEFAULT_DOWNLOAD_BASE = "https://go.dev/dl/"

# Binaries every installed version must provide; each gets a shim.
GO_BINARIES = ("go", "gofmt")


def get_default_root() -> Path:
    """
    Get the default store root directory.

    Returns:
        ``~/.govm``
    """
    return Path.home() / ".govm"


@dataclass
class GovmConfig:
    """
    Resolved configuration for one govm process.

    Attributes:
        root: Version store root directory
        catalog_url: URL of the JSON release catalog
        download_base: Base URL release archives are fetched from
        lock_timeout: Seconds to wait for a version lock
        request_timeout: Seconds before an HTTP request times out
        max_retries: Download attempts before giving up
        search_roots: Directories scanned for .go-version files by prune
        search_depth: Maximum directory depth scanned below each search root
    """

    root: Path
    catalog_url: str = DEFAULT_CATALOG_URL
    download_base: str = DEFAULT_DOWNLOAD_BASE
    lock_timeout: float = 300
    request_timeout: float = 30
    max_retries: int = 3
    search_roots: List[Path] = field(default_factory=list)
    search_depth: int = 4

    @property
    def config_file(self) -> Path:
        return self.root / CONFIG_FILE_NAME


_FILE_KEYS = {
    "catalog_url": str,
    "download_base": str,
    "lock_timeout": (int, float),
    "request_timeout": (int, float),
    "max_retries": int,
    "search_roots": list,
    "search_depth": int,
}


def load_config(
    environ: Optional[Mapping[str, str]] = None, root: Optional[Path] = None
) -> GovmConfig:
    """
    Build the configuration for this process.

    Args:
        environ: Environment mapping (default: os.environ)
        root: Explicit store root, overriding GOVM_ROOT

    Returns:
        GovmConfig instance

    Raises:
        ConfigurationError: If config.yaml is malformed
    """
    if environ is None:
        environ = os.environ

    if root is None:
        env_root = environ.get(ROOT_ENV_VAR, "").strip()
        root = Path(env_root).expanduser() if env_root else get_default_root()

    config = GovmConfig(root=Path(root))
    overrides = _load_config_file(config.config_file)

    for name, value in overrides.items():
        if name == "search_roots":
            value = [Path(str(p)).expanduser() for p in value]
        setattr(config, name, value)

    logger.debug(f"Loaded configuration: root={config.root}")
    return config


def _load_config_file(config_file: Path) -> Dict[str, Any]:
    """
    Load and type-check the optional YAML config file.

    Returns:
        Mapping of GovmConfig field names to values (empty if no file)
    """
    if not config_file.exists():
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}", path=config_file) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {config_file}: {e}", path=config_file) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{config_file} must contain a mapping, got {type(data).__name__}",
            path=config_file,
        )

    result = {}
    for key, value in data.items():
        if key not in _FILE_KEYS:
            logger.debug(f"Ignoring unknown config key '{key}' in {config_file}")
            continue
        expected = _FILE_KEYS[key]
        # bool is an int subclass; reject it for numeric settings
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ConfigurationError(
                f"Invalid value for '{key}' in {config_file}: {value!r}",
                path=config_file,
            )
        result[key] = value

    return result
