"""
Test configuration package.

Marker definitions and collection hooks live in ``markers.py`` and are
re-exported from ``tests/conftest.py``.
"""

from .markers import pytest_collection_modifyitems, pytest_configure

__all__ = ["pytest_configure", "pytest_collection_modifyitems"]
