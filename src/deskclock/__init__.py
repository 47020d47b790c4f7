"""Business-hours SLA/OLA clock engine for help desk tickets."""

__version__ = "1.0.0"
