"""
Custom Exception Hierarchy for the B2C IEF reconcilers

This module provides the exception hierarchy shared by the key-container and
policy-document reconcilers. Every fatal condition surfaces as a subclass of
B2CIEFError so the calling framework can report a short summary plus a detail
string without knowing which component failed.

Drift (a remote resource that disappeared, a template that changed) is not an
error and never appears here: reconcilers signal it by returning None.
"""

from typing import Any, Dict, Optional

# Graph error code returned when a trustFramework object is not in the directory
NOT_FOUND_IN_DIRECTORY_CODE = "AADB2C90073"


class B2CIEFError(Exception):
    """
    Base exception class for all reconciliation errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    summary = "B2C IEF operation failed"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
            summary: Optional one-line summary overriding the class default
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion
        if summary:
            self.summary = summary

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    @property
    def detail(self) -> str:
        """Detail string for diagnostics, including the underlying API message."""
        if self.cause and str(self.cause) not in self.message:
            return f"{self.message}\n{self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "summary": self.summary,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


# Validation-related exceptions
class ValidationError(B2CIEFError):
    """Raised when a desired configuration value is rejected before any remote write."""

    summary = "Invalid policy key configuration"

    def __init__(
        self, message: str, attribute: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if attribute:
            context["attribute"] = attribute
        kwargs["context"] = context
        kwargs.setdefault("error_code", "VALIDATION_FAILED")
        super().__init__(message, **kwargs)


# Configuration-related exceptions
class ConfigurationError(B2CIEFError):
    """Raised when resource or provider configuration is unusable."""

    summary = "Invalid config"

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        super().__init__(message, **kwargs)


class TemplateNotFoundError(ConfigurationError):
    """Raised when a policy template file does not exist or cannot be read."""

    summary = "File does not exist!"

    def __init__(self, message: str, path: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if path:
            context["path"] = path
        kwargs["context"] = context
        kwargs.setdefault("error_code", "TEMPLATE_NOT_FOUND")
        kwargs.setdefault(
            "recovery_suggestion", "Check the 'file' attribute of the policy resource"
        )
        super().__init__(message, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(
        self, message: str, missing_keys: Optional[list[str]] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if missing_keys:
            context["missing_keys"] = missing_keys
        kwargs["context"] = context
        kwargs.setdefault("error_code", "MISSING_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion",
            f"Set required configuration: {', '.join(missing_keys)}"
            if missing_keys
            else "Set required configuration",
        )
        super().__init__(message, **kwargs)


# Remote (Microsoft Graph) exceptions
class RemoteError(B2CIEFError):
    """Raised when Microsoft Graph answers with an unexpected status."""

    summary = "Graph request failed"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if method:
            context["method"] = method
        if url:
            context["url"] = url
        if status_code is not None:
            context["status_code"] = status_code
        kwargs["context"] = context
        kwargs.setdefault("error_code", "GRAPH_REQUEST_FAILED")
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body or ""

    @property
    def detail(self) -> str:
        if self.response_body:
            return f"{self.message}\n{self.response_body}"
        return super().detail

    @property
    def is_not_found_in_directory(self) -> bool:
        """True when Graph reports the object does not exist in the directory."""
        return NOT_FOUND_IN_DIRECTORY_CODE in self.response_body


class DirectoryTransportError(RemoteError):
    """Raised when a Graph request never produced a response (network, timeout, token)."""

    summary = "Graph API request failed"

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "GRAPH_TRANSPORT_FAILED")
        kwargs.setdefault(
            "recovery_suggestion",
            "Check network connectivity and the service principal credentials",
        )
        super().__init__(message, **kwargs)


class ProvisioningFailedError(B2CIEFError):
    """
    Raised when a key container was created but its key material was not.

    The container exists remotely, so ``state`` holds the sanitized snapshot
    (with the assigned identifier) that the caller should still persist.
    """

    summary = "Error creating or uploading policy key"

    def __init__(self, message: str, state: Any = None, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "PROVISIONING_FAILED")
        super().__init__(message, **kwargs)
        self.state = state


class InvariantError(B2CIEFError):
    """Raised when an upstream contract is violated (no provisioning mode at all)."""

    summary = "No provisioning method specified"

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "INVARIANT_VIOLATED")
        super().__init__(message, **kwargs)


class OperationCancelledError(B2CIEFError):
    """Raised when the caller cancels an operation while a Graph call is pending."""

    summary = "Operation cancelled"

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if operation:
            context["operation"] = operation
        kwargs["context"] = context
        kwargs.setdefault("error_code", "CANCELLED")
        super().__init__(message, **kwargs)


# Utility functions for exception handling
def wrap_transport_exception(
    exc: Exception, method: str, url: str
) -> DirectoryTransportError:
    """
    Wrap an httpx or azure-identity exception in our hierarchy.

    Args:
        exc: The original exception
        method: HTTP method of the failed request
        url: Target URL of the failed request

    Returns:
        DirectoryTransportError: Wrapped exception with request context
    """
    error_message = str(exc) or exc.__class__.__name__
    if "timed out" in error_message.lower() or "timeout" in exc.__class__.__name__.lower():
        return DirectoryTransportError(
            f"Graph request timed out: {error_message}", method=method, url=url, cause=exc
        )
    return DirectoryTransportError(
        f"Graph request failed: {error_message}", method=method, url=url, cause=exc
    )
