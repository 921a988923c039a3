"""Clients domain - Customers that jobs are booked for"""

from .router import router

__all__ = ["router"]
