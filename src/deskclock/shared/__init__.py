"""
Shared Kernel Module
====================

Shared infrastructure used by the SLA bounded context and the API shell:
structured logging and HTTP middleware.

DO NOT add clock or calendar business logic to the shared kernel.
"""

__version__ = "1.0.0"
