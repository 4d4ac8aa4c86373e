"""Templating: kida integration and the ``Template`` return type."""

from waypoint.templating.returns import Template

__all__ = ["Template"]
