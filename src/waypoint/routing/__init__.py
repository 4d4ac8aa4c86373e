"""Routing: pattern registry with first-registered-wins matching.

Routes are registered during setup and compiled, together with their
middleware pipelines, into a read-only table when the app freezes.
"""

from waypoint.routing.group import RouteGroup
from waypoint.routing.route import PathSegment, Route, RouteMatch
from waypoint.routing.router import Router, match_segments, parse_path

__all__ = [
    "PathSegment",
    "Route",
    "RouteGroup",
    "RouteMatch",
    "Router",
    "match_segments",
    "parse_path",
]
