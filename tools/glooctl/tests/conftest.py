"""Shared fixtures: an in-memory storage backend."""

from __future__ import annotations

import copy

import pytest

from glooctl.models import Upstream, VirtualHost
from glooctl.storage import AlreadyExistsError, NotFoundError, Storage


class MemoryStorage(Storage):
    """Dict-backed storage that keeps insertion order."""

    def __init__(self, upstreams=None, virtual_hosts=None):
        self.upstreams: dict[str, Upstream] = {u.name: u for u in upstreams or []}
        self.virtual_hosts: dict[str, VirtualHost] = {v.name: v for v in virtual_hosts or []}
        self.created: list[str] = []

    def list_upstreams(self):
        return list(self.upstreams.values())

    def get_upstream(self, name):
        try:
            return self.upstreams[name]
        except KeyError:
            raise NotFoundError(f"upstream {name} not found") from None

    def create_upstream(self, upstream):
        if upstream.name in self.upstreams:
            raise AlreadyExistsError(upstream.name)
        self.upstreams[upstream.name] = upstream
        return upstream

    def list_virtual_hosts(self):
        return [copy.deepcopy(v) for v in self.virtual_hosts.values()]

    def get_virtual_host(self, name):
        try:
            return copy.deepcopy(self.virtual_hosts[name])
        except KeyError:
            raise NotFoundError(f"virtual host {name} not found") from None

    def create_virtual_host(self, vhost):
        if vhost.name in self.virtual_hosts:
            raise AlreadyExistsError(vhost.name)
        self.virtual_hosts[vhost.name] = copy.deepcopy(vhost)
        self.created.append(vhost.name)
        return vhost

    def update_virtual_host(self, vhost):
        if vhost.name not in self.virtual_hosts:
            raise NotFoundError(vhost.name)
        self.virtual_hosts[vhost.name] = copy.deepcopy(vhost)
        return vhost

    def delete_virtual_host(self, name):
        if name not in self.virtual_hosts:
            raise NotFoundError(name)
        del self.virtual_hosts[name]


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def kube_upstreams():
    return [
        Upstream(name="static-one", type="static", spec={"service_name": "x"}),
        Upstream(name="default-x-80", type="kubernetes",
                 spec={"service_name": "x", "service_namespace": "default", "service_port": "80"}),
        Upstream(name="ns-x-8080", type="kubernetes",
                 spec={"service_name": "x", "service_namespace": "ns", "service_port": "8080"}),
        Upstream(name="y-any", type="kubernetes", spec={"service_name": "y"}),
    ]
