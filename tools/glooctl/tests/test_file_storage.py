"""Tests for the directory-backed storage."""

from __future__ import annotations

import json

import pytest

from glooctl.models import Route, Upstream, VirtualHost
from glooctl.storage import (
    AlreadyExistsError,
    FileStorage,
    NotFoundError,
    StorageError,
    read_file_into,
)


@pytest.fixture
def storage(tmp_path):
    return FileStorage(str(tmp_path / "store"))


class TestFileStorage:

    def test_layout_created(self, tmp_path, storage):
        assert (tmp_path / "store" / "upstreams").is_dir()
        assert (tmp_path / "store" / "virtualhosts").is_dir()

    def test_create_get_roundtrip(self, tmp_path, storage):
        vh = VirtualHost(name="shop", domains=["shop.com"])
        storage.create_virtual_host(vh)
        assert (tmp_path / "store" / "virtualhosts" / "shop.yml").is_file()
        assert storage.get_virtual_host("shop") == vh

    def test_create_existing_raises(self, storage):
        storage.create_virtual_host(VirtualHost(name="shop"))
        with pytest.raises(AlreadyExistsError):
            storage.create_virtual_host(VirtualHost(name="shop"))

    def test_get_missing_raises(self, storage):
        with pytest.raises(NotFoundError):
            storage.get_virtual_host("nope")

    def test_update_requires_existing(self, storage):
        with pytest.raises(NotFoundError):
            storage.update_virtual_host(VirtualHost(name="nope"))

    def test_update_replaces(self, storage):
        storage.create_virtual_host(VirtualHost(name="shop"))
        storage.update_virtual_host(VirtualHost(name="shop", domains=["new.com"]))
        assert storage.get_virtual_host("shop").domains == ["new.com"]

    def test_delete(self, storage):
        storage.create_virtual_host(VirtualHost(name="shop"))
        storage.delete_virtual_host("shop")
        assert storage.list_virtual_hosts() == []
        with pytest.raises(NotFoundError):
            storage.delete_virtual_host("shop")

    def test_list_sorted_by_name(self, storage):
        for name in ("b", "c", "a"):
            storage.create_upstream(Upstream(name=name, type="static"))
        assert [u.name for u in storage.list_upstreams()] == ["a", "b", "c"]

    def test_rejects_path_like_names(self, storage):
        with pytest.raises(StorageError, match="invalid object name"):
            storage.get_upstream("../etc")

    def test_invalid_document(self, tmp_path, storage):
        (tmp_path / "store" / "virtualhosts" / "bad.yml").write_text("domains: [a.com]\n")
        with pytest.raises(StorageError, match="bad.yml"):
            storage.list_virtual_hosts()


class TestReadFileInto:

    def test_yaml(self, tmp_path):
        path = tmp_path / "route.yaml"
        path.write_text(
            "request_matcher:\n"
            "  path_prefix: /api\n"
            "single_destination:\n"
            "  upstream:\n"
            "    name: backend\n"
        )
        route = read_file_into(str(path), Route)
        assert route.single_destination.name == "backend"

    def test_json(self, tmp_path):
        path = tmp_path / "route.json"
        path.write_text(json.dumps({
            "event_matcher": {"event_type": "e"},
            "single_destination": {"upstream": {"name": "u"}},
        }))
        assert read_file_into(str(path), Route).matcher.event_type == "e"

    def test_missing_file(self, tmp_path):
        with pytest.raises(NotFoundError):
            read_file_into(str(tmp_path / "missing.yaml"), Route)

    def test_unparseable(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [unclosed\n")
        with pytest.raises(StorageError, match="unable to parse"):
            read_file_into(str(path), Route)

    def test_invalid_object(self, tmp_path):
        path = tmp_path / "route.yaml"
        path.write_text("prefix_rewrite: /x\n")
        with pytest.raises(StorageError, match="invalid Route"):
            read_file_into(str(path), Route)
