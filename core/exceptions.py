"""
Custom exceptions for the CDC control-plane client with structured error context.

Every failure the client can surface falls into one of three families:
client-side precondition failures, backend rejections, and transport
failures that happen before a structured response is available.

Exception Hierarchy:
    CDCClientError (base)
    ├── ValidationError
    ├── RequestError
    └── TransportError
        └── ResponseParseError
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


GENERIC_REQUEST_FAILURE = "Request to the CDC backend failed"
GENERIC_TRANSPORT_FAILURE = "Unable to reach the CDC backend"


class CDCClientError(Exception):
    """
    Base exception for all client errors.
    
    Attributes:
        message: Human-readable error message
        context: Additional context information (path, status code, etc.)
        original_exception: The original exception that was caught (if any)
    """
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)
        
        self.context["error_timestamp"] = self.timestamp.isoformat()
        
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception
    
    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"
        
        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"
        
        return base_msg
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Client-side precondition errors
# ============================================================================

class ValidationError(CDCClientError):
    """
    Raised when a client-side precondition is not met.
    
    Always raised before any request is issued, so the backend never
    sees the rejected operation.
    
    Attributes:
        errors: Every individual problem found, in discovery order
    """
    
    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.errors = list(errors) if errors else [message]
        self.context["errors"] = self.errors


# ============================================================================
# Backend errors
# ============================================================================

class RequestError(CDCClientError):
    """
    Raised when the backend answered but rejected the request.
    
    Covers both ``success: false`` payloads and non-2xx statuses. The
    message is the backend's ``message`` (or ``error``) verbatim when one
    was sent.
    
    Context should include:
        - method: HTTP method
        - path: Request path relative to the API base URL
        - status_code: HTTP status code
    """
    
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        payload: Optional[Any] = None
    ):
        super().__init__(message, context)
        self.status_code = status_code
        self.payload = payload
        if status_code is not None:
            self.context["status_code"] = status_code
    
    @property
    def is_not_found(self) -> bool:
        if self.status_code == 404:
            return True
        return "not found" in self.message.lower()


class TransportError(CDCClientError):
    """
    Raised when no structured response could be obtained.
    
    Context should include:
        - method: HTTP method
        - path: Request path relative to the API base URL
    """
    
    def __init__(
        self,
        message: str = GENERIC_TRANSPORT_FAILURE,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)


class ResponseParseError(TransportError):
    """Response body was not valid JSON or did not match the expected shape."""
    pass
