"""
Directory-backed storage: one YAML file per object.

Layout::

    <root>/upstreams/<name>.yml
    <root>/virtualhosts/<name>.yml
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..models import ModelError, Upstream, VirtualHost
from .base import AlreadyExistsError, NotFoundError, Storage, StorageError

__all__ = ["FileStorage", "read_file_into"]

logger = logging.getLogger(__name__)

_UPSTREAMS = "upstreams"
_VIRTUAL_HOSTS = "virtualhosts"
_SUFFIX = ".yml"


def _load_yaml(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise StorageError(f"unable to read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise StorageError(f"unable to parse {path}: {exc}") from exc


def read_file_into(filename: str, cls):
    """Load a single object of type *cls* from a YAML or JSON file.

    JSON is valid YAML, so both formats go through ``yaml.safe_load``.
    """
    path = Path(filename)
    if not path.is_file():
        raise NotFoundError(f"file not found: {filename}")
    data = _load_yaml(path)
    try:
        return cls.from_dict(data)
    except ModelError as exc:
        raise StorageError(f"invalid {cls.__name__} in {filename}: {exc}") from exc


class FileStorage(Storage):
    """Storage that keeps every object in its own file under *root*."""

    def __init__(self, root: str):
        self.root = Path(os.path.expanduser(root))
        for kind in (_UPSTREAMS, _VIRTUAL_HOSTS):
            (self.root / kind).mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path(self, kind: str, name: str) -> Path:
        if not name or "/" in name or name.startswith("."):
            raise StorageError(f"invalid object name: {name!r}")
        return self.root / kind / f"{name}{_SUFFIX}"

    def _read(self, kind: str, name: str, cls):
        path = self._path(kind, name)
        if not path.exists():
            raise NotFoundError(f"{kind} {name} not found")
        try:
            return cls.from_dict(_load_yaml(path))
        except ModelError as exc:
            raise StorageError(f"invalid object in {path}: {exc}") from exc

    def _list(self, kind: str, cls) -> list:
        items = []
        for path in sorted((self.root / kind).glob(f"*{_SUFFIX}")):
            try:
                items.append(cls.from_dict(_load_yaml(path)))
            except ModelError as exc:
                raise StorageError(f"invalid object in {path}: {exc}") from exc
        logger.debug("Found %d %s in %s", len(items), kind, self.root)
        return items

    def _write(self, kind: str, name: str, data: dict) -> None:
        path = self._path(kind, name)
        logger.debug("Writing %s", path)
        try:
            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as exc:
            raise StorageError(f"unable to write {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Upstreams
    # ------------------------------------------------------------------

    def list_upstreams(self) -> list[Upstream]:
        return self._list(_UPSTREAMS, Upstream)

    def get_upstream(self, name: str) -> Upstream:
        return self._read(_UPSTREAMS, name, Upstream)

    def create_upstream(self, upstream: Upstream) -> Upstream:
        if self._path(_UPSTREAMS, upstream.name).exists():
            raise AlreadyExistsError(f"upstream {upstream.name} already exists")
        self._write(_UPSTREAMS, upstream.name, upstream.to_dict())
        logger.info("Created upstream %s", upstream.name)
        return upstream

    # ------------------------------------------------------------------
    # Virtual hosts
    # ------------------------------------------------------------------

    def list_virtual_hosts(self) -> list[VirtualHost]:
        return self._list(_VIRTUAL_HOSTS, VirtualHost)

    def get_virtual_host(self, name: str) -> VirtualHost:
        return self._read(_VIRTUAL_HOSTS, name, VirtualHost)

    def create_virtual_host(self, vhost: VirtualHost) -> VirtualHost:
        if self._path(_VIRTUAL_HOSTS, vhost.name).exists():
            raise AlreadyExistsError(f"virtual host {vhost.name} already exists")
        self._write(_VIRTUAL_HOSTS, vhost.name, vhost.to_dict())
        logger.info("Created virtual host %s", vhost.name)
        return vhost

    def update_virtual_host(self, vhost: VirtualHost) -> VirtualHost:
        if not self._path(_VIRTUAL_HOSTS, vhost.name).exists():
            raise NotFoundError(f"virtual host {vhost.name} not found")
        self._write(_VIRTUAL_HOSTS, vhost.name, vhost.to_dict())
        logger.info("Updated virtual host %s", vhost.name)
        return vhost

    def delete_virtual_host(self, name: str) -> None:
        path = self._path(_VIRTUAL_HOSTS, name)
        if not path.exists():
            raise NotFoundError(f"virtual host {name} not found")
        path.unlink()
        logger.info("Deleted virtual host %s", name)
