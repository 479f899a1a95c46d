"""Email configuration exports."""

from . import defaults
from .defaults import *  # noqa: F401,F403

__all__ = [*defaults.__all__]
