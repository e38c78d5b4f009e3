"""Custom exception classes for the Spheron provider."""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for different types of failures."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Authentication errors
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"

    # API transport errors
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_TIMEOUT = "API_TIMEOUT"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    # Resource lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    DOMAIN_NOT_FOUND = "DOMAIN_NOT_FOUND"

    # Deployment errors
    DEPLOYMENT_FAILED = "DEPLOYMENT_FAILED"
    DEPLOYMENT_TIMEOUT = "DEPLOYMENT_TIMEOUT"
    EVENT_PARSE_FAILED = "EVENT_PARSE_FAILED"

    # Domain errors
    PORT_MAPPING_NOT_FOUND = "PORT_MAPPING_NOT_FOUND"


class SpheronProviderError(Exception):
    """Base exception class for the Spheron provider."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Specific error code for the failure
            details: Additional context about the error
            cause: The underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for diagnostics and CLI output."""
        result = {
            'error': self.error_code.value,
            'message': self.message,
            'details': self.details
        }

        if self.cause:
            result['cause'] = str(self.cause)

        return result

    def __str__(self) -> str:
        """String representation of the exception."""
        base_str = f"{self.error_code.value}: {self.message}"

        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base_str += f" ({details_str})"

        if self.cause:
            base_str += f" [caused by: {self.cause}]"

        return base_str


class ConfigurationError(SpheronProviderError):
    """Exception for configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {}
        if config_key:
            details['config_key'] = config_key

        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details
        )


class AuthenticationError(SpheronProviderError):
    """Exception for rejected or unscoped API tokens."""

    def __init__(self, message: str = "Authentication failed", error_code: ErrorCode = ErrorCode.AUTHENTICATION_FAILED):
        super().__init__(
            message=message,
            error_code=error_code
        )


class ApiError(SpheronProviderError):
    """Exception for failed calls against the Spheron API."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.API_REQUEST_FAILED,
        cause: Optional[Exception] = None
    ):
        details = {}
        if status_code is not None:
            details['status_code'] = status_code
        if endpoint:
            details['endpoint'] = endpoint

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            cause=cause
        )
        self.status_code = status_code


class ResourceNotFoundError(SpheronProviderError):
    """Exception for when a remote object does not exist."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND
    ):
        super().__init__(
            message=f"{resource_type.capitalize()} with ID {resource_id} not found",
            error_code=error_code,
            details={'resource_type': resource_type, 'resource_id': resource_id}
        )


class DeploymentError(SpheronProviderError):
    """Exception for instance deployments that did not reach the deployed state."""

    def __init__(
        self,
        message: str,
        topic_id: Optional[str] = None,
        status: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.DEPLOYMENT_FAILED
    ):
        details = {}
        if topic_id:
            details['topic_id'] = topic_id
        if status:
            details['status'] = status

        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )


class DeploymentTimeoutError(DeploymentError):
    """Exception for deployments that did not finish within the configured timeout."""

    def __init__(self, topic_id: str, timeout_seconds: int):
        super().__init__(
            message=f"Deployment did not finish within {timeout_seconds} seconds",
            topic_id=topic_id,
            error_code=ErrorCode.DEPLOYMENT_TIMEOUT
        )
        self.details['timeout_seconds'] = timeout_seconds


class EventParseError(SpheronProviderError):
    """Exception for deployment events that cannot be decoded."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.EVENT_PARSE_FAILED,
            cause=cause
        )


class PortMappingError(SpheronProviderError):
    """Exception for URLs that do not correspond to any exposed instance port."""

    def __init__(self, url: str):
        super().__init__(
            message="No matching port found for the provided URL",
            error_code=ErrorCode.PORT_MAPPING_NOT_FOUND,
            details={'url': url}
        )
