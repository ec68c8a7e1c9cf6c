"""
QuestFit error types

Every error carries a technical `message` for logs and a `user_message`
that is safe to show in an alert. Service methods convert these into
failed result dicts; the API maps them to HTTP status codes.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class QuestFitError(Exception):
    """
    Root of the QuestFit error tree

    Each instance gets a request id and a UTC timestamp, and is logged
    at ERROR as soon as it is constructed.

    Example:
        raise QuestFitError(
            message="Failed to save character",
            user_id="5f1c...",
            operation="update_character",
            context={"character_id": "abc-123"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An unexpected error occurred. Please try again."
        self.timestamp = datetime.utcnow()

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(QuestFitError):
    """
    Raised when input fails validation, before any I/O happens

    Examples:
    - Negative XP amount
    - Password too short
    - Malformed email address

    Example:
        raise ValidationError(
            message="XP amount cannot be negative",
            field="amount",
            value=-5
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(QuestFitError):
    """
    Base class for remote store errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble reaching the server. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"query": query},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested record does not exist where one is required"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class ConcurrentUpdateError(DatabaseError):
    """Character changed between read and write (version mismatch)"""

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        **kwargs
    ):
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(
            message=message,
            user_message="Your character was updated elsewhere. Please refresh and try again.",
            context={"record_id": record_id, "expected_version": expected_version},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(QuestFitError):
    """
    A remote HTTP service (the identity provider) failed or was unreachable
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        user_message: Optional[str] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        super().__init__(
            message=message,
            user_message=user_message or f"We're having trouble connecting to {service or 'an external service'}. Please try again later.",
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class IdentityProviderError(ExternalAPIError):
    """Identity provider rejected a request or returned an error payload"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("user_message", message)
        super().__init__(
            message=message,
            service="Identity provider",
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> QuestFitError:
    """
    Convert a psycopg or httpx error into the matching QuestFitError subclass

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate QuestFitError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="update_character",
                context={"character_id": character_id}
            )
    """
    import psycopg
    import httpx

    if isinstance(error, QuestFitError):
        return error

    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # HTTP errors
    elif isinstance(error, httpx.TimeoutException):
        return ExternalAPIError(
            message=f"API request timed out: {str(error)}",
            service="Identity provider",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return ExternalAPIError(
            message=f"API returned error: {error.response.status_code}",
            service="Identity provider",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.RequestError):
        return ExternalAPIError(
            message=f"API request failed: {str(error)}",
            service="Identity provider",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return QuestFitError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
