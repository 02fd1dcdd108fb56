"""
CLI entry point for glooctl.

Subcommands:
    route        get / create / delete routes on a virtual host
    virtualhost  get / create / update / delete virtual hosts
    upstream     get / create upstreams
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    build_storage,
    load_config,
    merge_cli_overrides,
)
from .formatter import OUTPUT_FORMATS, print_routes, print_upstreams, print_virtual_hosts
from .logging_setup import setup_logging
from .models import KubeUpstreamRef, Route, Upstream, VirtualHost
from .resolvers import ResolutionError, resolve_kube_upstream, resolve_virtual_host
from .route_builder import RouteDetail, RouteError, build_route
from .storage import Storage, StorageError, read_file_into

__all__ = ["UsageError", "main", "route_from_args"]

logger = logging.getLogger(__name__)


class UsageError(Exception):
    """Raised when command arguments contradict each other."""


# Route flags that may not be combined with --filename
_ROUTE_FLAGS = (
    "event", "path_exact", "path_regex", "path_prefix", "http_method",
    "header", "upstream", "function", "prefix_rewrite",
    "kube_upstream", "kube_namespace", "kube_port",
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _add_output_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--output", "-o", choices=OUTPUT_FORMATS, default=None,
                        help="Output format (default: from config, else summary)")


def _add_vhost_selector(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--virtual-host", default="",
                       help="Virtual host to use (default: the one serving --domain, else 'default')")
    group.add_argument("--domain", "-d", default="",
                       help="Select the virtual host serving this domain")


def _add_route_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--filename", "-f", default="",
                        help="Read the route from a YAML/JSON file instead of flags")

    matcher = parser.add_argument_group("matcher")
    matcher.add_argument("--event", default="", help="Event type to match")
    matcher.add_argument("--path-exact", default="", help="Exact request path to match")
    matcher.add_argument("--path-regex", default="", help="Request path regex to match")
    matcher.add_argument("--path-prefix", default="", help="Request path prefix to match")
    matcher.add_argument("--http-method", default="",
                         help="Comma-separated HTTP methods, e.g. GET,POST")
    matcher.add_argument("--header", default="",
                         help="Comma-separated key:value headers to match")

    dest = parser.add_argument_group("destination")
    dest.add_argument("--upstream", "-u", default="", help="Destination upstream name")
    dest.add_argument("--function", default="", help="Destination function on the upstream")
    dest.add_argument("--prefix-rewrite", default="", help="Rewrite the matched prefix to this value")

    kube = parser.add_argument_group("kubernetes upstream (instead of --upstream)")
    kube.add_argument("--kube-upstream", default="", help="Kubernetes service name")
    kube.add_argument("--kube-namespace", default="", help="Kubernetes service namespace")
    kube.add_argument("--kube-port", type=int, default=0, help="Kubernetes service port")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glooctl",
        description="Manage routes, virtual hosts and upstreams of the API gateway",
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH,
                        help="Path to YAML config file (default: config/config.yaml)")
    parser.add_argument("--url", default=None, help="Control plane URL (overrides config)")
    parser.add_argument("--token", default=None, help="Control plane API token (overrides config)")
    parser.add_argument("--namespace", "-n", default=None,
                        help="Control plane namespace (overrides config)")
    parser.add_argument("--storage-dir", default=None,
                        help="Use local file storage in this directory instead of the control plane")
    parser.add_argument("--verbose", "-v", action="store_true", default=False,
                        help="Enable verbose (debug) logging")
    parser.add_argument("--log-dir", default=None,
                        help="Directory for log files (env: GLOO_LOG_DIR)")

    commands = parser.add_subparsers(dest="command", metavar="<command>")
    commands.required = True

    # route
    route = commands.add_parser("route", help="Manage routes")
    route_cmds = route.add_subparsers(dest="action", metavar="<action>")
    route_cmds.required = True

    p = route_cmds.add_parser("get", help="List the routes of a virtual host")
    _add_vhost_selector(p)
    _add_output_flag(p)
    p.set_defaults(handler=_route_get)

    p = route_cmds.add_parser("create", help="Append a route to a virtual host")
    _add_vhost_selector(p)
    _add_route_flags(p)
    _add_output_flag(p)
    p.set_defaults(handler=_route_create)

    p = route_cmds.add_parser("delete", help="Remove a route from a virtual host")
    _add_vhost_selector(p)
    _add_route_flags(p)
    _add_output_flag(p)
    p.set_defaults(handler=_route_delete)

    # virtualhost
    vhost = commands.add_parser("virtualhost", help="Manage virtual hosts")
    vhost_cmds = vhost.add_subparsers(dest="action", metavar="<action>")
    vhost_cmds.required = True

    p = vhost_cmds.add_parser("get", help="Show one or all virtual hosts")
    p.add_argument("name", nargs="?", default="", help="Virtual host name")
    _add_output_flag(p)
    p.set_defaults(handler=_vhost_get)

    p = vhost_cmds.add_parser("create", help="Create a virtual host")
    p.add_argument("name", nargs="?", default="", help="Virtual host name")
    p.add_argument("--domains", default="", help="Comma-separated domains")
    p.add_argument("--filename", "-f", default="", help="Read the virtual host from a file")
    _add_output_flag(p)
    p.set_defaults(handler=_vhost_create)

    p = vhost_cmds.add_parser("update", help="Change the domains of a virtual host, or replace it from a file")
    p.add_argument("name", nargs="?", default="", help="Virtual host name")
    p.add_argument("--domains", default=None, help="Comma-separated domains (replaces the current list)")
    p.add_argument("--filename", "-f", default="", help="Read the whole virtual host from a file")
    _add_output_flag(p)
    p.set_defaults(handler=_vhost_update)

    p = vhost_cmds.add_parser("delete", help="Delete a virtual host")
    p.add_argument("name", help="Virtual host name")
    p.set_defaults(handler=_vhost_delete)

    # upstream
    upstream = commands.add_parser("upstream", help="Manage upstreams")
    upstream_cmds = upstream.add_subparsers(dest="action", metavar="<action>")
    upstream_cmds.required = True

    p = upstream_cmds.add_parser("get", help="Show one or all upstreams")
    p.add_argument("name", nargs="?", default="", help="Upstream name")
    _add_output_flag(p)
    p.set_defaults(handler=_upstream_get)

    p = upstream_cmds.add_parser("create", help="Create an upstream from a file")
    p.add_argument("--filename", "-f", required=True, help="YAML/JSON upstream definition")
    _add_output_flag(p)
    p.set_defaults(handler=_upstream_create)

    return parser


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def route_from_args(args: argparse.Namespace, storage: Storage) -> Route:
    """Build the route described by *args*.

    ``--filename`` loads it from a file.  Otherwise a ``--kube-upstream``
    reference is resolved to an upstream name first, then the route is
    built from the flags.
    """
    if args.filename:
        given = [f"--{flag.replace('_', '-')}" for flag in _ROUTE_FLAGS if getattr(args, flag)]
        if given:
            raise RouteError(f"--filename cannot be combined with {', '.join(given)}")
        return read_file_into(args.filename, Route)

    rd = RouteDetail(
        event=args.event,
        path_exact=args.path_exact,
        path_regex=args.path_regex,
        path_prefix=args.path_prefix,
        verb=args.http_method,
        headers=args.header,
        upstream=args.upstream,
        function=args.function,
        prefix_rewrite=args.prefix_rewrite,
        kube=KubeUpstreamRef(
            name=args.kube_upstream,
            namespace=args.kube_namespace,
            port=args.kube_port or 0,
        ),
    )
    if rd.kube.name:
        rd.upstream = resolve_kube_upstream(rd.kube, storage).name
    return build_route(rd)


def _route_get(args, storage: Storage, output: str) -> None:
    vh, _ = resolve_virtual_host(storage, args.virtual_host, args.domain, create=False)
    print_routes(vh.routes, output)


def _route_create(args, storage: Storage, output: str) -> None:
    route = route_from_args(args, storage)
    vh, created = resolve_virtual_host(storage, args.virtual_host, args.domain, create=True)
    if created:
        print(f"Created virtual host {vh.name}")
    vh.routes.append(route)
    storage.update_virtual_host(vh)
    logger.info("Added route to virtual host %s", vh.name)
    print_routes([route], output)


def _route_delete(args, storage: Storage, output: str) -> None:
    route = route_from_args(args, storage)
    vh, _ = resolve_virtual_host(storage, args.virtual_host, args.domain, create=False)
    if route not in vh.routes:
        raise ResolutionError(f"route not found in virtual host {vh.name}")
    vh.routes.remove(route)
    storage.update_virtual_host(vh)
    logger.info("Removed route from virtual host %s", vh.name)
    print_routes(vh.routes, output)


# ---------------------------------------------------------------------------
# Virtual hosts
# ---------------------------------------------------------------------------

def _vhost_get(args, storage: Storage, output: str) -> None:
    if args.name:
        vhosts = [storage.get_virtual_host(args.name)]
    else:
        vhosts = storage.list_virtual_hosts()
    print_virtual_hosts(vhosts, output)


def _split_domains(value: str) -> list[str]:
    return [d.strip() for d in value.split(",") if d.strip()]


def _check_domains_free(storage: Storage, vh: VirtualHost) -> None:
    """A domain may be served by at most one virtual host."""
    for existing in storage.list_virtual_hosts():
        if existing.name == vh.name:
            continue
        taken = [d for d in vh.domains if existing.has_domain(d)]
        if taken:
            raise ResolutionError(
                f"domain {', '.join(taken)} already served by virtual host {existing.name}"
            )


def _vhost_create(args, storage: Storage, output: str) -> None:
    if args.filename:
        if args.name or args.domains:
            raise UsageError("--filename cannot be combined with a name or --domains")
        vh = read_file_into(args.filename, VirtualHost)
    elif args.name:
        vh = VirtualHost(name=args.name, domains=_split_domains(args.domains))
    else:
        raise UsageError("a virtual host name or --filename is required")

    _check_domains_free(storage, vh)
    print_virtual_hosts([storage.create_virtual_host(vh)], output)


def _vhost_update(args, storage: Storage, output: str) -> None:
    if args.filename:
        if args.name or args.domains is not None:
            raise UsageError("--filename cannot be combined with a name or --domains")
        vh = read_file_into(args.filename, VirtualHost)
        storage.get_virtual_host(vh.name)
    elif args.name:
        if args.domains is None:
            raise UsageError("nothing to update: give --domains or --filename")
        # Routes, ssl config and metadata are kept
        vh = storage.get_virtual_host(args.name)
        vh.domains = _split_domains(args.domains)
    else:
        raise UsageError("a virtual host name or --filename is required")

    _check_domains_free(storage, vh)
    print_virtual_hosts([storage.update_virtual_host(vh)], output)


def _vhost_delete(args, storage: Storage, output: str) -> None:
    storage.delete_virtual_host(args.name)
    print(f"Deleted virtual host {args.name}")


# ---------------------------------------------------------------------------
# Upstreams
# ---------------------------------------------------------------------------

def _upstream_get(args, storage: Storage, output: str) -> None:
    if args.name:
        upstreams = [storage.get_upstream(args.name)]
    else:
        upstreams = storage.list_upstreams()
    print_upstreams(upstreams, output)


def _upstream_create(args, storage: Storage, output: str) -> None:
    upstream = read_file_into(args.filename, Upstream)
    print_upstreams([storage.create_upstream(upstream)], output)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    try:
        log_path = setup_logging(verbose=args.verbose, log_dir=args.log_dir)
        logger.debug("glooctl %s %s, log file %s", args.command, args.action, log_path)
        cfg = merge_cli_overrides(load_config(args.config), args)
        storage = build_storage(cfg)
        output = getattr(args, "output", None) or cfg.output.format
        args.handler(args, storage, output)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)
    except (UsageError, RouteError, ResolutionError, StorageError) as exc:
        logger.error("%s", exc)
        sys.exit(1)
