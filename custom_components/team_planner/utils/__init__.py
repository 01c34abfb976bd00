# File: utils/__init__.py
"""Pure Python utilities for Team Planner.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Calendar-date parsing, arithmetic and week/month boundaries

Usage:
    from . import dt_utils
    from .dt_utils import dt_add_days
"""

from . import dt_utils

__all__ = ["dt_utils"]
