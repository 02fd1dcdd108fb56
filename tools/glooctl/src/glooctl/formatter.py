"""
Print routes, virtual hosts and upstreams as summary text, JSON or YAML.

JSON and YAML output is produced per object from its wire encoding; an
object that fails to serialize is reported and the rest are still printed.
"""

from __future__ import annotations

import json
import logging

import yaml

from .models import (
    EventMatcher,
    FunctionDestination,
    RequestMatcher,
    Route,
    Upstream,
    UpstreamDestination,
    VirtualHost,
    PATH_EXACT,
    PATH_PREFIX,
    PATH_REGEX,
)

__all__ = [
    "OUTPUT_FORMATS",
    "print_routes",
    "print_upstreams",
    "print_virtual_hosts",
    "route_to_string",
    "to_json",
    "to_yaml",
]

logger = logging.getLogger(__name__)

# Anything other than json/yaml falls back to the summary
OUTPUT_FORMATS = ("summary", "json", "yaml")

_EVENT = "event       : "
_PATH_LABELS = {
    PATH_EXACT: "exact path  : ",
    PATH_REGEX: "regex path  : ",
    PATH_PREFIX: "path prefix : ",
}
_METHODS = "methods     : "
_HEADERS = "headers     : "
_UNKNOWN = "matcher     : unknown"


# ------------------------------------------------------------------
# Serialization
# ------------------------------------------------------------------

def to_json(obj) -> str:
    return json.dumps(obj.to_dict(), indent=2)


def to_yaml(obj) -> str:
    # Round-trip through JSON so YAML carries exactly the JSON encoding
    data = json.loads(json.dumps(obj.to_dict()))
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def _print_json(obj) -> None:
    try:
        text = to_json(obj)
    except (TypeError, ValueError) as exc:
        logger.warning("Unable to convert %r to JSON: %s", obj, exc)
        print("unable to convert to JSON ", exc)
        return
    print(text)


def _print_yaml(obj) -> None:
    try:
        text = to_yaml(obj)
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Unable to convert %r to YAML: %s", obj, exc)
        print("unable to convert to YAML ", exc)
        return
    print(text)


def _print_list(items: list, output: str, empty_notice: str, summary) -> None:
    if not items:
        print(empty_notice)
        return
    for item in items:
        if output == "json":
            _print_json(item)
        elif output == "yaml":
            _print_yaml(item)
        else:
            print(summary(item))


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------

def _matcher_to_string(route: Route) -> str:
    m = route.matcher
    if isinstance(m, EventMatcher):
        return _EVENT + m.event_type
    if not isinstance(m, RequestMatcher):
        return _UNKNOWN

    lines = [_PATH_LABELS.get(m.path_kind, "matcher     : ") + m.path]
    if m.verbs:
        lines.append(_METHODS + ", ".join(m.verbs))
    if m.headers:
        lines.append(_HEADERS + ", ".join(f"{k}={v}" for k, v in m.headers.items()))
    return "\n".join(lines)


def _destination_to_string(dest) -> str:
    if isinstance(dest, UpstreamDestination):
        return dest.name
    if isinstance(dest, FunctionDestination):
        return f"{dest.upstream_name}/{dest.function_name}"
    return "<no destination specified>"


def _route_destinations_to_string(route: Route) -> str:
    if route.single_destination is not None:
        return _destination_to_string(route.single_destination)
    if route.multiple_destinations:
        lines = ["["]
        for wd in route.multiple_destinations:
            lines.append(f"  {wd.weight:3d}, {_destination_to_string(wd.destination)}")
        lines.append("]")
        return "\n".join(lines)
    return "unknown"


def route_to_string(route: Route | None) -> str:
    """Multi-line summary: matcher lines, then `` -> destination``."""
    if route is None:
        return ""
    return f"{_matcher_to_string(route)}\n -> {_route_destinations_to_string(route)}\n"


def print_routes(routes: list[Route], output: str = "") -> None:
    _print_list(routes, output, "No routes defined", route_to_string)


# ------------------------------------------------------------------
# Virtual hosts and upstreams
# ------------------------------------------------------------------

def _virtual_host_to_string(vh: VirtualHost) -> str:
    lines = [
        f"name        : {vh.name}",
        f"domains     : {', '.join(vh.domains) if vh.domains else '*'}",
        f"routes      : {len(vh.routes)}",
    ]
    secret = vh.ssl_config.get("secret_ref")
    if secret:
        lines.append(f"ssl secret  : {secret}")
    return "\n".join(lines) + "\n"


def _upstream_to_string(u: Upstream) -> str:
    lines = [
        f"name        : {u.name}",
        f"type        : {u.type or 'unknown'}",
    ]
    for key, value in u.spec.items():
        lines.append(f"  {key}: {value}")
    if u.functions:
        names = [f.get("name", "?") if isinstance(f, dict) else str(f) for f in u.functions]
        lines.append(f"functions   : {', '.join(names)}")
    return "\n".join(lines) + "\n"


def print_virtual_hosts(vhosts: list[VirtualHost], output: str = "") -> None:
    _print_list(vhosts, output, "No virtual hosts defined", _virtual_host_to_string)


def print_upstreams(upstreams: list[Upstream], output: str = "") -> None:
    _print_list(upstreams, output, "No upstreams defined", _upstream_to_string)
