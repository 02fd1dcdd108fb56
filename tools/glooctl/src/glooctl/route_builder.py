"""
Build a Route from a flat set of command-line style parameters.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import (
    PATH_EXACT,
    PATH_PREFIX,
    PATH_REGEX,
    EventMatcher,
    FunctionDestination,
    KubeUpstreamRef,
    RequestMatcher,
    Route,
    UpstreamDestination,
)

__all__ = [
    "RouteError",
    "RouteDetail",
    "build_route",
    "parse_headers",
    "parse_verbs",
]


class RouteError(Exception):
    """Raised when route parameters are missing, conflicting or malformed."""


@dataclass
class RouteDetail:
    """Raw route parameters, as given on the command line."""
    event: str = ""
    path_exact: str = ""
    path_regex: str = ""
    path_prefix: str = ""
    verb: str = ""
    headers: str = ""
    upstream: str = ""
    function: str = ""
    prefix_rewrite: str = ""
    kube: KubeUpstreamRef = field(default_factory=lambda: KubeUpstreamRef(name=""))


def parse_verbs(verb: str) -> list[str]:
    """``"get, post"`` -> ``["GET", "POST"]``; empty string means no restriction."""
    if not verb:
        return []
    return [v.strip() for v in verb.upper().split(",")]


def parse_headers(headers: str) -> dict[str, str]:
    """Parse ``"key:value,key2:value2"`` into a dict.

    Each pair is split on its first colon so values may contain colons.

    Raises:
        RouteError: If any pair has no colon.
    """
    if not headers:
        return {}
    parsed: dict[str, str] = {}
    for entry in headers.split(","):
        key, sep, value = entry.partition(":")
        if not sep:
            raise RouteError(f"unable to parse headers {headers}")
        parsed[key.strip()] = value.strip()
    return parsed


def _request_matcher(rd: RouteDetail) -> RequestMatcher:
    verbs = parse_verbs(rd.verb)
    headers = parse_headers(rd.headers)

    paths = [
        (kind, value)
        for kind, value in (
            (PATH_EXACT, rd.path_exact),
            (PATH_REGEX, rd.path_regex),
            (PATH_PREFIX, rd.path_prefix),
        )
        if value
    ]
    if not paths:
        raise RouteError("no matcher specified")
    if len(paths) > 1:
        kinds = ", ".join(kind for kind, _ in paths)
        raise RouteError(f"only one path matcher may be specified, got {kinds}")

    kind, value = paths[0]
    return RequestMatcher(path_kind=kind, path=value, verbs=verbs, headers=headers)


def build_route(rd: RouteDetail) -> Route:
    """Turn *rd* into a Route with exactly one matcher and one destination.

    An event type takes precedence: path, verb and header parameters are
    then ignored.  Kubernetes upstream references must already have been
    resolved into ``rd.upstream`` by the caller.

    Raises:
        RouteError: If no matcher or destination can be built.
    """
    if rd.event:
        matcher = EventMatcher(event_type=rd.event)
    else:
        matcher = _request_matcher(rd)

    if not rd.upstream:
        raise RouteError("no destination specified: an upstream is required")
    if rd.function:
        destination = FunctionDestination(upstream_name=rd.upstream, function_name=rd.function)
    else:
        destination = UpstreamDestination(name=rd.upstream)

    return Route(
        matcher=matcher,
        single_destination=destination,
        prefix_rewrite=rd.prefix_rewrite,
    )
