"""Appointment domain - relational rows joined with clinical detail documents"""

from .router import router

__all__ = ["router"]
