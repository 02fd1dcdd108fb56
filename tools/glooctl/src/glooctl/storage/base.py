"""
Storage interface shared by all backends.
"""

from __future__ import annotations

import abc

from ..models import Upstream, VirtualHost

__all__ = ["AlreadyExistsError", "NotFoundError", "Storage", "StorageError"]


class StorageError(Exception):
    """Raised when the storage backend fails or rejects a request."""


class NotFoundError(StorageError):
    """Raised when the requested object does not exist."""


class AlreadyExistsError(StorageError):
    """Raised when creating an object whose name is already taken."""


class Storage(abc.ABC):
    """List/get/create/update/delete access per object kind."""

    @abc.abstractmethod
    def list_upstreams(self) -> list[Upstream]:
        ...

    @abc.abstractmethod
    def get_upstream(self, name: str) -> Upstream:
        ...

    @abc.abstractmethod
    def create_upstream(self, upstream: Upstream) -> Upstream:
        ...

    @abc.abstractmethod
    def list_virtual_hosts(self) -> list[VirtualHost]:
        ...

    @abc.abstractmethod
    def get_virtual_host(self, name: str) -> VirtualHost:
        ...

    @abc.abstractmethod
    def create_virtual_host(self, vhost: VirtualHost) -> VirtualHost:
        ...

    @abc.abstractmethod
    def update_virtual_host(self, vhost: VirtualHost) -> VirtualHost:
        ...

    @abc.abstractmethod
    def delete_virtual_host(self, name: str) -> None:
        ...
