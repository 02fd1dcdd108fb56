"""
Domain objects for routes, virtual hosts and upstreams.

Every object can be converted to and from its canonical wire encoding
(snake_case field names, oneof fields rendered as a single populated key,
unset fields omitted) with ``to_dict()`` / ``from_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

__all__ = [
    "DEFAULT_VIRTUAL_HOST",
    "UPSTREAM_TYPE_KUBERNETES",
    "PATH_EXACT",
    "PATH_REGEX",
    "PATH_PREFIX",
    "ModelError",
    "EventMatcher",
    "RequestMatcher",
    "UpstreamDestination",
    "FunctionDestination",
    "WeightedDestination",
    "Route",
    "VirtualHost",
    "Upstream",
    "KubeUpstreamRef",
]

# Reserved virtual host that must always exist
DEFAULT_VIRTUAL_HOST = "default"

UPSTREAM_TYPE_KUBERNETES = "kubernetes"

# Request matcher path kinds (also the wire field names)
PATH_EXACT = "path_exact"
PATH_REGEX = "path_regex"
PATH_PREFIX = "path_prefix"
_PATH_KINDS = (PATH_EXACT, PATH_REGEX, PATH_PREFIX)


class ModelError(ValueError):
    """Raised when a wire document cannot be decoded into a domain object."""


def _mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ModelError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _optional_mapping(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    return dict(_mapping(value, key))


def _optional_list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ModelError(f"{key} must be a list, got {type(value).__name__}")
    return list(value)


def _string_list(data: dict, key: str) -> list[str]:
    values = _optional_list(data, key)
    for value in values:
        if not isinstance(value, str):
            raise ModelError(f"{key} must be a list of strings, got {value!r}")
    return values


def _string_map(data: dict, key: str) -> dict[str, str]:
    values = _optional_mapping(data, key)
    for k, v in values.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise ModelError(f"{key} must map strings to strings, got {k!r}: {v!r}")
    return values


def _weight(entry: dict) -> int:
    value = entry.get("weight") or 0
    # bool is an int subclass
    if isinstance(value, bool):
        raise ModelError(f"weight must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ModelError(f"weight must be an integer, got {value!r}") from exc


# ------------------------------------------------------------------
# Matchers
# ------------------------------------------------------------------

@dataclass(frozen=True)
class EventMatcher:
    event_type: str

    def to_dict(self) -> dict:
        return {"event_matcher": {"event_type": self.event_type}}


@dataclass(frozen=True)
class RequestMatcher:
    """Match on path (exactly one kind), optional verbs, headers and query params."""
    path_kind: str
    path: str
    verbs: list[str] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.path_kind not in _PATH_KINDS:
            raise ModelError(f"unknown path kind {self.path_kind!r}")

    def to_dict(self) -> dict:
        body: dict[str, Any] = {self.path_kind: self.path}
        if self.verbs:
            body["verbs"] = list(self.verbs)
        if self.headers:
            body["headers"] = dict(self.headers)
        if self.query_params:
            body["query_params"] = dict(self.query_params)
        return {"request_matcher": body}

    @classmethod
    def from_dict(cls, data: dict) -> RequestMatcher:
        data = _mapping(data, "request_matcher")
        kinds = [k for k in _PATH_KINDS if data.get(k)]
        if len(kinds) != 1:
            raise ModelError(
                f"request_matcher must set exactly one of {', '.join(_PATH_KINDS)}"
            )
        return cls(
            path_kind=kinds[0],
            path=data[kinds[0]],
            verbs=_string_list(data, "verbs"),
            headers=_string_map(data, "headers"),
            query_params=_string_map(data, "query_params"),
        )


Matcher = Union[EventMatcher, RequestMatcher]


# ------------------------------------------------------------------
# Destinations
# ------------------------------------------------------------------

@dataclass(frozen=True)
class UpstreamDestination:
    name: str

    def to_dict(self) -> dict:
        return {"upstream": {"name": self.name}}


@dataclass(frozen=True)
class FunctionDestination:
    upstream_name: str
    function_name: str

    def to_dict(self) -> dict:
        return {
            "function": {
                "upstream_name": self.upstream_name,
                "function_name": self.function_name,
            }
        }


Destination = Union[UpstreamDestination, FunctionDestination]


def _destination_from_dict(data: Any) -> Destination:
    data = _mapping(data, "destination")
    if "function" in data:
        fn = _mapping(data["function"], "function")
        return FunctionDestination(
            upstream_name=fn.get("upstream_name", ""),
            function_name=fn.get("function_name", ""),
        )
    if "upstream" in data:
        return UpstreamDestination(name=_mapping(data["upstream"], "upstream").get("name", ""))
    raise ModelError("destination must set one of function, upstream")


@dataclass(frozen=True)
class WeightedDestination:
    destination: Destination
    weight: int = 0

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"destination": self.destination.to_dict()}
        if self.weight:
            body["weight"] = self.weight
        return body


# ------------------------------------------------------------------
# Route
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Route:
    """A single routing rule.

    A route has exactly one matcher and either a single destination or a
    list of weighted destinations.
    """
    matcher: Matcher
    single_destination: Destination | None = None
    multiple_destinations: list[WeightedDestination] = field(default_factory=list)
    prefix_rewrite: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.single_destination is not None and self.multiple_destinations:
            raise ModelError(
                "a route takes either a single destination or multiple destinations, not both"
            )

    def to_dict(self) -> dict:
        out = self.matcher.to_dict()
        if self.multiple_destinations:
            out["multiple_destinations"] = [d.to_dict() for d in self.multiple_destinations]
        if self.single_destination is not None:
            out["single_destination"] = self.single_destination.to_dict()
        if self.prefix_rewrite:
            out["prefix_rewrite"] = self.prefix_rewrite
        if self.extensions:
            out["extensions"] = dict(self.extensions)
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Route:
        data = _mapping(data, "route")
        has_event = "event_matcher" in data
        has_request = "request_matcher" in data
        if has_event == has_request:
            raise ModelError("route must set exactly one of event_matcher, request_matcher")
        if has_event:
            matcher: Matcher = EventMatcher(
                event_type=_mapping(data["event_matcher"], "event_matcher").get("event_type", "")
            )
        else:
            matcher = RequestMatcher.from_dict(data["request_matcher"])

        single = None
        if data.get("single_destination"):
            single = _destination_from_dict(data["single_destination"])
        multiple = []
        for entry in _optional_list(data, "multiple_destinations"):
            entry = _mapping(entry, "multiple_destinations entry")
            multiple.append(WeightedDestination(
                destination=_destination_from_dict(entry.get("destination")),
                weight=_weight(entry),
            ))
        if single is None and not multiple:
            raise ModelError("route must set one of single_destination, multiple_destinations")

        return cls(
            matcher=matcher,
            single_destination=single,
            multiple_destinations=multiple,
            prefix_rewrite=data.get("prefix_rewrite", "") or "",
            extensions=_optional_mapping(data, "extensions"),
        )


# ------------------------------------------------------------------
# Virtual hosts and upstreams
# ------------------------------------------------------------------

@dataclass
class VirtualHost:
    name: str
    domains: list[str] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)
    ssl_config: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def has_domain(self, domain: str) -> bool:
        return domain in self.domains

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"name": self.name}
        if self.domains:
            out["domains"] = list(self.domains)
        if self.routes:
            out["routes"] = [r.to_dict() for r in self.routes]
        if self.ssl_config:
            out["ssl_config"] = dict(self.ssl_config)
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out

    @classmethod
    def from_dict(cls, data: Any) -> VirtualHost:
        data = _mapping(data, "virtual host")
        if not data.get("name"):
            raise ModelError("virtual host is missing a name")
        return cls(
            name=data["name"],
            domains=_string_list(data, "domains"),
            routes=[Route.from_dict(r) for r in _optional_list(data, "routes")],
            ssl_config=_optional_mapping(data, "ssl_config"),
            metadata=_optional_mapping(data, "metadata"),
        )


@dataclass
class Upstream:
    name: str
    type: str = ""
    spec: dict[str, Any] = field(default_factory=dict)
    functions: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"name": self.name}
        if self.type:
            out["type"] = self.type
        if self.spec:
            out["spec"] = dict(self.spec)
        if self.functions:
            out["functions"] = list(self.functions)
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Upstream:
        data = _mapping(data, "upstream")
        if not data.get("name"):
            raise ModelError("upstream is missing a name")
        return cls(
            name=data["name"],
            type=data.get("type", "") or "",
            spec=_optional_mapping(data, "spec"),
            functions=_optional_list(data, "functions"),
            metadata=_optional_mapping(data, "metadata"),
        )


@dataclass(frozen=True)
class KubeUpstreamRef:
    """Query for a Kubernetes upstream; empty namespace / zero port mean 'any'."""
    name: str
    namespace: str = ""
    port: int = 0
