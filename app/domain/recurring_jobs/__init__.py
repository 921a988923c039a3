"""Recurring jobs domain - Definitions, materialization and edit/delete propagation"""

from .router import router

__all__ = ["router"]
