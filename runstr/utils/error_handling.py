"""
Error handling utilities for consistent error patterns across the pipeline.

This module provides simple helper functions to standardize error handling
and logging patterns throughout the codebase.
"""

import bittensor as bt
from typing import Any, Dict, Optional


def log_and_raise_validation_error(
    message: str,
    data: Optional[Dict[str, Any]] = None,
    context_info: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log validation error with context and raise ValueError.

    Args:
        message: Error message describing what validation failed
        data: Data that failed validation (will be truncated if large)
        context_info: Additional context dictionary

    Raises:
        ValueError: Always raises with formatted message
    """
    # Truncate large data for logging
    safe_data = data
    if data and len(str(data)) > 200:
        safe_data = str(data)[:200] + "... (truncated)"

    bt.logging.error(
        f"Validation failed: {message}",
        extra={'validation_data': safe_data, 'context': context_info}
    )

    raise ValueError(message)


def log_and_raise_config_error(
    message: str,
    config_key: Optional[str] = None,
    config_value: Optional[Any] = None
) -> None:
    """
    Log configuration error and raise ValueError.

    Args:
        message: Error message describing the configuration issue
        config_key: The configuration key that's problematic
        config_value: The problematic value (will be sanitized)

    Raises:
        ValueError: Always raises with formatted message
    """
    # Sanitize config value
    safe_value = config_value
    if config_value is not None and any(sensitive in str(config_key).lower()
                                        for sensitive in ['key', 'token', 'password', 'secret']):
        safe_value = '***REDACTED***'

    bt.logging.error(
        f"Configuration error: {message}",
        extra={'config_key': config_key, 'config_value': safe_value}
    )

    raise ValueError(f"{message} (config_key: {config_key})")


# Standard error messages for common scenarios
class ErrorMessages:
    """Standard error messages for consistency."""

    # Relay-related errors
    RELAY_CONNECTION_FAILED = "Failed to connect to relay"
    RELAY_SUBSCRIPTION_CLOSED = "Relay closed the subscription"
    RELAY_TRANSPORT_ERROR = "Relay connection dropped"
    RELAY_ABANDONED = "abandoned at global timeout"
    ALL_RELAYS_FAILED = "All relays failed"

    # Validation errors
    INVALID_FILTER = "Event filter is invalid"
    INVALID_WINDOW = "Time window is invalid"

    # Configuration errors
    INVALID_SCHEDULE = "Reward schedule is invalid"
    MISSING_TIER = "Reward schedule is missing a streak tier"
    NEGATIVE_PAYOUT = "Reward schedule contains a negative payout"
    CREDENTIALS_MISSING = "Required credentials are missing"
