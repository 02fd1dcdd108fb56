"""
Configuration loading, validation, and typed models.

Supports:
  - YAML config file
  - Environment variable overrides (GLOO_URL, GLOO_TOKEN, GLOO_NAMESPACE,
    GLOO_STORAGE_DIR)
  - CLI argument merging via merge_cli_overrides()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .formatter import OUTPUT_FORMATS
from .storage import FileStorage, HTTPStorage, Storage

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "PROJECT_ROOT",
    "STORAGE_TYPES",
    "ConfigError",
    "ControlPlaneConfig",
    "StorageConfig",
    "OutputConfig",
    "AppConfig",
    "build_storage",
    "load_config",
    "merge_cli_overrides",
]

logger = logging.getLogger(__name__)

# Project root directory (two levels up from the package)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config", "config.yaml")

# Environment variable names
ENV_URL = "GLOO_URL"
ENV_TOKEN = "GLOO_TOKEN"
ENV_NAMESPACE = "GLOO_NAMESPACE"
ENV_STORAGE_DIR = "GLOO_STORAGE_DIR"

STORAGE_TYPES = ("http", "file")

DEFAULT_URL = "http://localhost:8080"
DEFAULT_NAMESPACE = "gloo-system"
DEFAULT_STORAGE_DIR = "~/.glooctl/storage"


# ---------------------------------------------------------------------------
# Typed configuration models
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass(frozen=True)
class ControlPlaneConfig:
    url: str = DEFAULT_URL
    namespace: str = DEFAULT_NAMESPACE
    token: str = ""

    def __repr__(self) -> str:
        """Redact token in repr to prevent accidental logging."""
        token = "***redacted***" if self.token else ""
        return (
            f"ControlPlaneConfig(url={self.url!r}, namespace={self.namespace!r}, "
            f"token='{token}')"
        )


@dataclass(frozen=True)
class StorageConfig:
    type: str = "http"
    file_dir: str = DEFAULT_STORAGE_DIR


@dataclass(frozen=True)
class OutputConfig:
    format: str = "summary"


@dataclass(frozen=True)
class AppConfig:
    control_plane: ControlPlaneConfig = ControlPlaneConfig()
    storage: StorageConfig = StorageConfig()
    output: OutputConfig = OutputConfig()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _section(raw: dict, key: str) -> dict:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load and validate the YAML configuration file.

    The default config file is optional; a missing file yields built-in
    defaults.  An explicitly given path must exist.

    Environment variables take precedence over YAML values:
      - GLOO_URL          -> control_plane.url
      - GLOO_TOKEN        -> control_plane.token
      - GLOO_NAMESPACE    -> control_plane.namespace
      - GLOO_STORAGE_DIR  -> storage.file_dir

    Raises:
        ConfigError: If the config file is missing or invalid.
    """
    path = Path(config_path)
    if path.exists():
        try:
            with open(path, "r") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Unable to parse config file {config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Invalid config file format: expected YAML mapping, got {type(raw).__name__}"
            )
    elif os.path.abspath(config_path) == DEFAULT_CONFIG_PATH:
        logger.debug("No config file at %s, using defaults", config_path)
        raw = {}
    else:
        raise ConfigError(f"Config file not found: {config_path}")

    # --- Control plane ---
    cp = _section(raw, "control_plane")
    url = os.environ.get(ENV_URL) or cp.get("url") or DEFAULT_URL
    namespace = os.environ.get(ENV_NAMESPACE) or cp.get("namespace") or DEFAULT_NAMESPACE
    token = os.environ.get(ENV_TOKEN) or cp.get("token") or ""

    # --- Storage ---
    st = _section(raw, "storage")
    storage_type = st.get("type") or "http"
    if storage_type not in STORAGE_TYPES:
        raise ConfigError(
            f"Invalid storage type: {storage_type!r}. Expected one of {', '.join(STORAGE_TYPES)}."
        )
    file_dir = os.environ.get(ENV_STORAGE_DIR) or st.get("file_dir") or DEFAULT_STORAGE_DIR

    # --- Output ---
    out = _section(raw, "output")
    output_fmt = out.get("format") or "summary"
    if output_fmt not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Invalid output format: {output_fmt!r}. Expected one of {', '.join(OUTPUT_FORMATS)}."
        )

    config = AppConfig(
        control_plane=ControlPlaneConfig(url=url, namespace=namespace, token=token),
        storage=StorageConfig(type=storage_type, file_dir=file_dir),
        output=OutputConfig(format=output_fmt),
    )
    logger.debug("Config loaded: %r", config)
    return config


# ---------------------------------------------------------------------------
# CLI override merging
# ---------------------------------------------------------------------------

def merge_cli_overrides(cfg: AppConfig, args) -> AppConfig:
    """Merge CLI arguments over loaded config, returning a new AppConfig.

    ``args`` may carry url, token, namespace and storage_dir; any that are
    None (or missing) keep the loaded value.  Giving --storage-dir switches
    to file storage.
    """
    cp = cfg.control_plane
    st = cfg.storage

    url = getattr(args, "url", None) or cp.url
    token = getattr(args, "token", None) or cp.token
    namespace = getattr(args, "namespace", None) or cp.namespace

    storage_dir = getattr(args, "storage_dir", None)
    storage = StorageConfig(type="file", file_dir=storage_dir) if storage_dir else st

    return AppConfig(
        control_plane=ControlPlaneConfig(url=url, namespace=namespace, token=token),
        storage=storage,
        output=cfg.output,
    )


def build_storage(cfg: AppConfig) -> Storage:
    """Instantiate the storage backend selected by *cfg*."""
    if cfg.storage.type == "file":
        logger.debug("Using file storage at %s", cfg.storage.file_dir)
        return FileStorage(cfg.storage.file_dir)
    logger.debug("Using control plane at %s", cfg.control_plane.url)
    return HTTPStorage(
        cfg.control_plane.url,
        token=cfg.control_plane.token,
        namespace=cfg.control_plane.namespace,
    )
