"""Utility helpers shared across core packages."""

from .env import get_bool_env, get_env, get_int_env, get_node_env, is_local, is_production

__all__ = [
    "get_env",
    "get_bool_env",
    "get_int_env",
    "get_node_env",
    "is_local",
    "is_production",
]
