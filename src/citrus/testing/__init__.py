"""Test utilities for citrus applications.

    from citrus.testing import TestClient
"""

from citrus.testing.client import TestClient

__all__ = ["TestClient"]
