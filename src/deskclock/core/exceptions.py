"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class InvalidCalendarException(DomainException):
    """Raised when a business calendar cannot be used for time arithmetic."""

    def __init__(self, reason: str, details: Optional[dict] = None):
        self.reason = reason
        super().__init__(f"Invalid business calendar: {reason}", details)


class InvalidTransitionException(DomainException):
    """Raised when a clock is driven through a transition it does not allow."""

    def __init__(
        self,
        action: str,
        state: str,
        details: Optional[dict] = None
    ):
        self.action = action
        self.state = state
        super().__init__(
            f"Cannot {action} a clock in state '{state}'",
            details or {"action": action, "state": state}
        )


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ConcurrencyException(RepositoryException):
    """Raised when a record changed between read and write."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        expected_version: int,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.expected_version = expected_version
        super().__init__(
            f"{resource_type} '{resource_id}' was modified concurrently "
            f"(expected version {expected_version})",
            details
        )


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""
