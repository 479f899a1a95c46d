"""Donation feature package: donor matching, notification and confirmation tracking."""

from __future__ import annotations

from . import db_models, dependencies, repositories, routes, service, types

__all__ = ["db_models", "dependencies", "repositories", "routes", "service", "types"]
