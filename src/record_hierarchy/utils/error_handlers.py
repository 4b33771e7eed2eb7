"""
Error handling utilities for the record hierarchy system.

This module provides custom exceptions and error handling functions used
throughout hierarchy construction, from request validation down to the
individual relationship fetches issued against a record store.

Classes:
    HierarchyError: Base exception for all hierarchy errors.
    InvalidRequestError: Exception for invalid caller input.
    RecordNotFoundError: Exception for a root record that does not exist.
    RecordStoreError: Exception for record store failures.
    ConfigurationError: Exception for configuration errors.
    HierarchyRequestError: Single caller-visible error for a failed request.

Functions:
    log_error_with_context: Log error with full context for debugging.
    is_retriable_error: Determine if an error should trigger a retry.
"""

import logging
import traceback
from typing import Any, Dict, Optional


class HierarchyError(Exception):
    """
    Base exception for hierarchy errors.

    Attributes:
        message: Error message describing what went wrong.
        record_id: Optional identifier of the record being processed.
        stage: Optional stage where the error occurred.
        recoverable: Whether the error is recoverable with retry.
        original_error: Optional underlying exception that was wrapped.
    """

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        stage: Optional[str] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize HierarchyError.

        Args:
            message: Error message describing the issue.
            record_id: Optional record identifier.
            stage: Optional stage name.
            recoverable: Whether error can be recovered with retry.
            original_error: Optional underlying exception that caused this error.
        """
        self.message = message
        self.record_id = record_id
        self.stage = stage
        self.recoverable = recoverable
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging and storage.

        Returns:
            Dictionary containing error_type, message, record_id, stage,
            recoverable status, and original error information if available.
        """
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "record_id": self.record_id,
            "stage": self.stage,
            "recoverable": self.recoverable,
        }

        if self.original_error:
            result["original_error_type"] = type(self.original_error).__name__
            result["original_error_message"] = str(self.original_error)

        return result


class InvalidRequestError(HierarchyError):
    """
    Exception for invalid caller input (blank ids, bad depth).

    Attributes:
        field_name: Optional name of the argument that failed validation.
    """

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        field_name: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            record_id=record_id,
            stage="validation",
            recoverable=False,
        )
        self.field_name = field_name

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["field_name"] = self.field_name
        return result


class RecordNotFoundError(HierarchyError):
    """
    Exception raised when the root record of a hierarchy does not exist.

    Attributes:
        entity_type: Entity type that was queried.
    """

    def __init__(self, message: str, record_id: str, entity_type: str):
        super().__init__(
            message=message,
            record_id=record_id,
            stage="root_fetch",
            recoverable=False,
        )
        self.entity_type = entity_type

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["entity_type"] = self.entity_type
        return result


class RecordStoreError(HierarchyError):
    """
    Exception for record store operation errors.

    Attributes:
        operation: Optional store operation that failed.
    """

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        operation: Optional[str] = None,
        recoverable: bool = True,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize RecordStoreError.

        Args:
            message: Error message describing the store issue.
            record_id: Optional record identifier.
            operation: Optional store operation (fetch_by_id, fetch_children).
            recoverable: Whether error can be recovered with retry.
            original_error: Optional underlying driver exception.
        """
        super().__init__(
            message=message,
            record_id=record_id,
            stage="record_store",
            recoverable=recoverable,
            original_error=original_error,
        )
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        return result


class ConfigurationError(HierarchyError):
    """
    Exception for configuration errors.

    Attributes:
        config_key: Optional configuration key that caused the error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            stage="initialization",
            recoverable=False,  # Config errors not recoverable without fix
            original_error=original_error,
        )
        self.config_key = config_key

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


class HierarchyRequestError(HierarchyError):
    """Single caller-visible error for a failed hierarchy request."""

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            record_id=record_id,
            stage="request",
            recoverable=is_retriable_error(original_error)
            if original_error is not None
            else False,
            original_error=original_error,
        )


def log_error_with_context(
    error: Exception,
    logger: logging.Logger,
    context: Dict[str, Any],
    level: int = logging.ERROR,
) -> None:
    """
    Log error with context information for debugging.

    Logs error details including type, message, and all contextual information.
    In DEBUG mode, also logs the full stack trace.

    Args:
        error: The exception that occurred.
        logger: Logger instance to use for logging.
        context: Dictionary with contextual information (record_id, stage, etc.).
        level: Logging level for the main message. Defaults to ERROR;
            relationship fetches that are skipped log at WARNING.

    Note:
        Stack traces are only logged when logger is at DEBUG level or lower.
    """
    error_type = type(error).__name__
    error_message = str(error)

    record_id = context.get("record_id", "unknown")
    stage = context.get("stage", "unknown")

    logger.log(
        level,
        f"Error in {stage} for record {record_id}: [{error_type}] {error_message}",
    )

    if isinstance(error, HierarchyError) and error.original_error:
        original_type = type(error.original_error).__name__
        original_msg = str(error.original_error)
        logger.log(level, f"  Original error: [{original_type}] {original_msg}")

    for key, value in context.items():
        if key not in ["record_id", "stage"]:
            logger.log(level, f"  {key}: {value}")

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Stack trace:")
        logger.debug(traceback.format_exc())


def is_retriable_error(error: Exception) -> bool:
    """
    Determine if an error should trigger a retry attempt.

    Args:
        error: The exception to evaluate.

    Returns:
        True if the error is retriable (transient store failures, network
        issues, or HierarchyError with recoverable=True), False otherwise.

    Example:
        >>> import sqlite3
        >>> store_error = RecordStoreError(
        ...     "Database locked",
        ...     original_error=sqlite3.OperationalError("database is locked")
        ... )
        >>> is_retriable_error(store_error)
        True
    """
    if isinstance(error, HierarchyError):
        if error.original_error:
            original_str = str(error.original_error).lower()

            transient_keywords = [
                "locked",
                "timeout",
                "connection",
                "busy",
                "temporary",
                "unavailable",
            ]
            if any(keyword in original_str for keyword in transient_keywords):
                return True

            permanent_keywords = [
                "no such table",
                "no such column",
                "syntax error",
                "integrity",
                "constraint",
            ]
            if any(keyword in original_str for keyword in permanent_keywords):
                return False

        return error.recoverable

    if isinstance(error, (ConnectionError, TimeoutError)):
        return True

    return False
