"""
Control plane REST API client implementing the storage interface.

Objects live under ``<url>/api/v1/namespaces/<namespace>/<kind>[/<name>]``
and list endpoints answer with ``{"items": [...]}``.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models import ModelError, Upstream, VirtualHost
from .base import AlreadyExistsError, NotFoundError, Storage, StorageError

__all__ = ["HTTPStorage"]

logger = logging.getLogger(__name__)

_UPSTREAMS = "upstreams"
_VIRTUAL_HOSTS = "virtualhosts"


class HTTPStorage(Storage):
    """Storage backed by the gateway control plane API."""

    # Default timeout for all HTTP requests: (connect, read) in seconds.
    DEFAULT_TIMEOUT = (10, 60)

    def __init__(self, url: str, token: str = "", namespace: str = "gloo-system"):
        self.url = url.rstrip("/")
        self.namespace = namespace
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        # POST is never retried.
        retry = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET", "PUT", "DELETE"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _url(self, kind: str, name: str = "") -> str:
        url = f"{self.url}/api/v1/namespaces/{self.namespace}/{kind}"
        if name:
            url = f"{url}/{name}"
        return url

    def _request(self, method: str, url: str, body: dict | None = None) -> Any:
        """Send a request and return the parsed JSON body (None when empty).

        HTTP 404 and 409 are mapped to NotFoundError / AlreadyExistsError;
        any other failure becomes a StorageError.
        """
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, json=body, timeout=self.DEFAULT_TIMEOUT)
        except requests.RequestException as exc:
            raise StorageError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code == 404:
            raise NotFoundError(f"{url} not found")
        if resp.status_code == 409:
            raise AlreadyExistsError(f"{url} already exists")
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise StorageError(f"{method} {url} failed: {exc}") from exc

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise StorageError(f"{method} {url} returned invalid JSON") from exc

    def _list(self, kind: str) -> list[dict]:
        url = self._url(kind)
        data = self._request("GET", url) or {}
        if not isinstance(data, dict):
            raise StorageError(f"GET {url} returned {type(data).__name__}, expected an object")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise StorageError(f"GET {url} returned non-list items")
        logger.debug("Found %d %s", len(items), kind)
        return items

    @staticmethod
    def _decode(model, data: Any):
        try:
            return model.from_dict(data)
        except ModelError as exc:
            raise StorageError(f"invalid {model.__name__} returned by control plane: {exc}") from exc

    # ------------------------------------------------------------------
    # Upstreams
    # ------------------------------------------------------------------

    def list_upstreams(self) -> list[Upstream]:
        return [self._decode(Upstream, item) for item in self._list(_UPSTREAMS)]

    def get_upstream(self, name: str) -> Upstream:
        return self._decode(Upstream, self._request("GET", self._url(_UPSTREAMS, name)))

    def create_upstream(self, upstream: Upstream) -> Upstream:
        data = self._request("POST", self._url(_UPSTREAMS), upstream.to_dict())
        logger.info("Created upstream %s", upstream.name)
        return self._decode(Upstream, data) if data else upstream

    # ------------------------------------------------------------------
    # Virtual hosts
    # ------------------------------------------------------------------

    def list_virtual_hosts(self) -> list[VirtualHost]:
        return [self._decode(VirtualHost, item) for item in self._list(_VIRTUAL_HOSTS)]

    def get_virtual_host(self, name: str) -> VirtualHost:
        return self._decode(VirtualHost, self._request("GET", self._url(_VIRTUAL_HOSTS, name)))

    def create_virtual_host(self, vhost: VirtualHost) -> VirtualHost:
        data = self._request("POST", self._url(_VIRTUAL_HOSTS), vhost.to_dict())
        logger.info("Created virtual host %s", vhost.name)
        return self._decode(VirtualHost, data) if data else vhost

    def update_virtual_host(self, vhost: VirtualHost) -> VirtualHost:
        data = self._request("PUT", self._url(_VIRTUAL_HOSTS, vhost.name), vhost.to_dict())
        logger.info("Updated virtual host %s", vhost.name)
        return self._decode(VirtualHost, data) if data else vhost

    def delete_virtual_host(self, name: str) -> None:
        self._request("DELETE", self._url(_VIRTUAL_HOSTS, name))
        logger.info("Deleted virtual host %s", name)
