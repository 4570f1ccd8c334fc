"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from loguru import logger


class MoneyFlowException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(MoneyFlowException):
    """Required settings (e.g. VAPID keys) are missing or invalid."""
    pass


class AuthenticationError(MoneyFlowException):
    """Authentication and authorization errors."""
    pass


class ValidationError(MoneyFlowException):
    """Data validation errors."""
    pass


class DispatchError(MoneyFlowException):
    """The subscription store could not be reached for a dispatch."""
    pass


class AlertRunError(MoneyFlowException):
    """A scheduled alert run could not enumerate its eligible users."""
    pass


def handle_authentication_error(error: AuthenticationError) -> HTTPException:
    """Handle authentication errors."""
    logger.warning(f"Authentication error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def handle_validation_error(error: ValidationError) -> HTTPException:
    """Handle validation errors."""
    logger.warning(f"Validation error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "message": error.message,
            "details": error.details
        }
    )


def handle_dispatch_error(error: DispatchError) -> HTTPException:
    """Handle a dispatch that could not reach the subscription store."""
    logger.error(f"Dispatch error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Notification service is temporarily unavailable. Please try again later."
    )


def handle_alert_run_error(error: AlertRunError) -> HTTPException:
    """Handle a scheduled run that could not start."""
    logger.error(f"Alert run error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "message": error.message,
            "details": error.details
        }
    )


def handle_configuration_error(error: ConfigurationError) -> HTTPException:
    """Handle missing push configuration."""
    logger.error(f"Configuration error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Push notifications are not configured."
    )
