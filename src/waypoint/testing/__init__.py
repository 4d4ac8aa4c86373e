"""Test utilities for waypoint applications::

    from waypoint.testing import TestClient
"""

from waypoint.testing.client import TestClient, encode_multipart

__all__ = ["TestClient", "encode_multipart"]
