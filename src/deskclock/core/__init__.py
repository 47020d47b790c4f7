"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from deskclock.core.exceptions import (
    ApplicationException,
    DomainException,
    InvalidCalendarException,
    InvalidTransitionException,
    RepositoryException,
    ConcurrencyException,
    ValidationException,
    ResourceNotFoundException,
    ConfigurationException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "InvalidCalendarException",
    "InvalidTransitionException",
    "RepositoryException",
    "ConcurrencyException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConfigurationException",
]
