"""Tests for summary, JSON and YAML output."""

from __future__ import annotations

import json

import yaml

from glooctl import formatter
from glooctl.formatter import print_routes, print_upstreams, print_virtual_hosts, route_to_string
from glooctl.models import (
    PATH_EXACT,
    PATH_REGEX,
    EventMatcher,
    FunctionDestination,
    RequestMatcher,
    Route,
    Upstream,
    UpstreamDestination,
    VirtualHost,
    WeightedDestination,
)


def _exact_route() -> Route:
    return Route(
        matcher=RequestMatcher(
            path_kind=PATH_EXACT, path="/foo", verbs=["GET", "POST"], headers={"a": "1"},
        ),
        single_destination=UpstreamDestination(name="backend"),
    )


def _event_route() -> Route:
    return Route(
        matcher=EventMatcher(event_type="order.created"),
        single_destination=FunctionDestination(upstream_name="aws", function_name="notify"),
    )


# ── Empty lists ──────────────────────────────────────────────────────

def test_empty_route_list_prints_notice_only(capsys) -> None:
    print_routes([], "json")
    assert capsys.readouterr().out == "No routes defined\n"


def test_empty_virtual_host_and_upstream_lists(capsys) -> None:
    print_virtual_hosts([])
    print_upstreams([], "yaml")
    assert capsys.readouterr().out == "No virtual hosts defined\nNo upstreams defined\n"


# ── Summary ──────────────────────────────────────────────────────────

def test_summary_request_matcher() -> None:
    assert route_to_string(_exact_route()) == (
        "exact path  : /foo\n"
        "methods     : GET, POST\n"
        "headers     : a=1\n"
        " -> backend\n"
    )


def test_summary_without_verbs_or_headers() -> None:
    route = Route(
        matcher=RequestMatcher(path_kind=PATH_REGEX, path="/v[0-9]+"),
        single_destination=UpstreamDestination(name="u"),
    )
    assert route_to_string(route) == "regex path  : /v[0-9]+\n -> u\n"


def test_summary_event_and_function() -> None:
    assert route_to_string(_event_route()) == "event       : order.created\n -> aws/notify\n"


def test_summary_multiple_destinations() -> None:
    route = Route(
        matcher=EventMatcher(event_type="e"),
        multiple_destinations=[
            WeightedDestination(destination=UpstreamDestination(name="a"), weight=10),
            WeightedDestination(
                destination=FunctionDestination(upstream_name="b", function_name="f"), weight=90,
            ),
        ],
    )
    assert route_to_string(route) == (
        "event       : e\n"
        " -> [\n"
        "   10, a\n"
        "   90, b/f\n"
        "]\n"
    )


def test_summary_route_without_destination() -> None:
    route = Route(matcher=EventMatcher(event_type="e"))
    assert route_to_string(route).endswith(" -> unknown\n")


def test_summary_none() -> None:
    assert route_to_string(None) == ""


def test_print_routes_default_is_summary(capsys) -> None:
    print_routes([_exact_route(), _event_route()], "")
    out = capsys.readouterr().out
    assert "exact path  : /foo" in out
    assert "event       : order.created" in out


# ── JSON / YAML ──────────────────────────────────────────────────────

def test_json_output_uses_wire_encoding(capsys) -> None:
    print_routes([_event_route()], "json")
    assert json.loads(capsys.readouterr().out) == {
        "event_matcher": {"event_type": "order.created"},
        "single_destination": {
            "function": {"upstream_name": "aws", "function_name": "notify"},
        },
    }


def test_yaml_output_uses_wire_encoding(capsys) -> None:
    print_routes([_exact_route()], "yaml")
    assert yaml.safe_load(capsys.readouterr().out) == _exact_route().to_dict()


def test_serialization_failure_is_per_object(capsys) -> None:
    bad = Route(
        matcher=EventMatcher(event_type="e"),
        single_destination=UpstreamDestination(name="u"),
        extensions={"not-serializable": object()},
    )
    print_routes([bad, _event_route()], "json")
    out = capsys.readouterr().out
    assert "unable to convert to JSON" in out
    assert '"event_type": "order.created"' in out


def test_yaml_serialization_failure_continues(capsys) -> None:
    bad = Route(
        matcher=EventMatcher(event_type="e"),
        single_destination=UpstreamDestination(name="u"),
        extensions={"bad": {1, 2}},
    )
    print_routes([bad, _exact_route()], "yaml")
    out = capsys.readouterr().out
    assert "unable to convert to YAML" in out
    assert "path_exact: /foo" in out


# ── Virtual hosts / upstreams ────────────────────────────────────────

def test_virtual_host_summary(capsys) -> None:
    vh = VirtualHost(
        name="shop",
        domains=["shop.com", "www.shop.com"],
        routes=[_exact_route()],
        ssl_config={"secret_ref": "shop-tls"},
    )
    print_virtual_hosts([vh])
    out = capsys.readouterr().out
    assert "name        : shop" in out
    assert "domains     : shop.com, www.shop.com" in out
    assert "routes      : 1" in out
    assert "ssl secret  : shop-tls" in out


def test_upstream_summary(capsys) -> None:
    u = Upstream(name="k", type="kubernetes", spec={"service_name": "x"},
                 functions=[{"name": "f1"}])
    print_upstreams([u])
    out = capsys.readouterr().out
    assert "type        : kubernetes" in out
    assert "  service_name: x" in out
    assert "functions   : f1" in out


def test_to_json_and_yaml_agree() -> None:
    vh = VirtualHost(name="a", domains=["a.com"])
    assert json.loads(formatter.to_json(vh)) == yaml.safe_load(formatter.to_yaml(vh))
