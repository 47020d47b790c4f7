"""
SLA Clock Module
================

Bounded Context for business-hours SLA/OLA deadline tracking.

Responsibilities:
- Business-time arithmetic inside tenant work calendars
- Per-ticket SLA (first response, resolution) and OLA clocks
- Pause/resume while tickets wait on the customer
- Breach and compliance derivation
- API for lifecycle events, clock status and tenant calendars
"""

__version__ = "1.0.0"
