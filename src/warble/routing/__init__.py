"""Routing: path compilation, route table, groups, and dispatch."""

from warble.routing.route import Route, compile_path, normalize_path
from warble.routing.router import HTTP_METHODS, Router

__all__ = ["HTTP_METHODS", "Route", "Router", "compile_path", "normalize_path"]
