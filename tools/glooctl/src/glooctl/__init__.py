"""Command-line client for API gateway routes, virtual hosts and upstreams."""

__version__ = "0.1.0"
