"""
SLA Interfaces Layer
====================

Interface adapters (controllers) for the SLA clock engine.

Contains:
- Controllers: FastAPI route handlers

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from deskclock.sla.interfaces.controllers import router as sla_router

__all__ = ["sla_router"]
