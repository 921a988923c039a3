"""Jobs domain - One-off jobs, recurring instances, status workflow and time tracking"""

from .router import router

__all__ = ["router"]
