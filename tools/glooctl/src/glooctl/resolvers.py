"""
Look up upstreams and virtual hosts in storage.

Both resolvers read fresh from storage on every call.
"""

from __future__ import annotations

import logging

from .models import (
    DEFAULT_VIRTUAL_HOST,
    UPSTREAM_TYPE_KUBERNETES,
    KubeUpstreamRef,
    Upstream,
    VirtualHost,
)
from .storage import AlreadyExistsError, Storage, StorageError

__all__ = [
    "KUBE_SPEC_NAME",
    "KUBE_SPEC_NAMESPACE",
    "KUBE_SPEC_PORT",
    "ResolutionError",
    "ensure_default_virtual_host",
    "resolve_kube_upstream",
    "resolve_virtual_host",
]

logger = logging.getLogger(__name__)

# Keys inside a kubernetes upstream spec
KUBE_SPEC_NAME = "service_name"
KUBE_SPEC_NAMESPACE = "service_namespace"
KUBE_SPEC_PORT = "service_port"


class ResolutionError(Exception):
    """Raised when an upstream or virtual host cannot be resolved unambiguously."""


# ------------------------------------------------------------------
# Upstreams
# ------------------------------------------------------------------

def _kube_upstream_matches(upstream: Upstream, ref: KubeUpstreamRef) -> bool:
    if upstream.type != UPSTREAM_TYPE_KUBERNETES:
        return False
    spec = upstream.spec
    name = spec.get(KUBE_SPEC_NAME)
    if not isinstance(name, str) or name != ref.name:
        return False
    if ref.namespace:
        ns = spec.get(KUBE_SPEC_NAMESPACE)
        if not isinstance(ns, str) or ns != ref.namespace:
            return False
    if ref.port:
        port = spec.get(KUBE_SPEC_PORT)
        if not isinstance(port, str) or port != str(ref.port):
            return False
    return True


def resolve_kube_upstream(ref: KubeUpstreamRef, storage: Storage) -> Upstream:
    """Find the kubernetes upstream for service *ref.name*.

    Namespace and port are only compared when set on *ref*.  Upstreams are
    scanned in the order storage returns them and the first match wins.

    Raises:
        ResolutionError: If no upstream matches.
    """
    for upstream in storage.list_upstreams():
        if _kube_upstream_matches(upstream, ref):
            logger.debug(
                "Kubernetes service %s/%s resolved to upstream %s",
                ref.namespace, ref.name, upstream.name,
            )
            return upstream
    raise ResolutionError(
        f"unable to find kubernetes upstream {ref.namespace}/{ref.name}"
    )


# ------------------------------------------------------------------
# Virtual hosts
# ------------------------------------------------------------------

def ensure_default_virtual_host(storage: Storage) -> None:
    """Create the reserved default virtual host unless it already exists."""
    try:
        storage.create_virtual_host(VirtualHost(name=DEFAULT_VIRTUAL_HOST))
    except AlreadyExistsError:
        logger.debug("Default virtual host already exists")


def resolve_virtual_host(
    storage: Storage,
    name: str = "",
    domain: str = "",
    create: bool = False,
) -> tuple[VirtualHost, bool]:
    """Locate the virtual host to operate on.

    Lookup order:
        - *name* given   -> that virtual host (must exist)
        - no *domain*    -> the default virtual host
        - *domain* given -> the single virtual host serving it; when none
          does and *create* is set, a new one named after the domain

    Creating the domain's virtual host is not atomic with the lookup: a
    concurrent client may create it first, in which case AlreadyExistsError
    propagates.

    Returns:
        (virtual_host, created)

    Raises:
        ResolutionError: If the domain matches no (and *create* is off) or
            several virtual hosts.
        StorageError: On storage failures, including NotFoundError for an
            unknown *name*.
    """
    ensure_default_virtual_host(storage)

    if name:
        return storage.get_virtual_host(name), False

    if not domain:
        return storage.get_virtual_host(DEFAULT_VIRTUAL_HOST), False

    try:
        vhosts = storage.list_virtual_hosts()
    except StorageError as exc:
        raise StorageError(f"unable to get list of existing virtual hosts: {exc}") from exc

    matches = [vh for vh in vhosts if vh.has_domain(domain)]
    if not matches:
        if not create:
            raise ResolutionError(f"didn't find any virtual host for domain {domain}")
        created = storage.create_virtual_host(VirtualHost(name=domain, domains=[domain]))
        return created, True
    if len(matches) > 1:
        raise ResolutionError(f"the domain {domain} matched {len(matches)} virtual hosts")
    return matches[0], False
