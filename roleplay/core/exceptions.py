# roleplay/core/exceptions.py
"""
Exceptions for the role-play trainer.

Every error carries a human-readable message plus an optional details dict
so that logs and API responses can report context without leaking internals.
"""

from typing import Optional, Dict, Any


class RoleplayBaseException(Exception):
    """Base exception for all trainer errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class DialogueFlowError(RoleplayBaseException):
    """Errors in dialogue progression and branch execution"""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize flow error.

        Args:
            message: Error description
            current_state: Branch or progress snapshot where the error occurred
            details: Additional error context
        """
        super().__init__(message, details)
        self.current_state = current_state

        if current_state:
            self.details['current_state'] = current_state

    def __str__(self) -> str:
        """String representation including state context"""
        base_msg = super().__str__()
        if self.current_state:
            return f"{base_msg} [State: {self.current_state}]"
        return base_msg


class DialogueValidationError(RoleplayBaseException):
    """Errors in trainee input or scenario data"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error description
            field: Field that failed validation
            value: Invalid value
            details: Additional validation context
        """
        super().__init__(message, details)
        self.field = field
        self.value = value

        if field:
            self.details['field'] = field
        if value is not None:
            self.details['value'] = str(value)


class ServiceError(RoleplayBaseException):
    """Errors in service initialization and platform interactions"""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize service error.

        Args:
            message: Error description
            service_name: Name of the failing service
            operation: Operation that failed
            details: Additional service context
        """
        super().__init__(message, details)
        self.service_name = service_name
        self.operation = operation

        if service_name:
            self.details['service'] = service_name
        if operation:
            self.details['operation'] = operation


class SpeechServiceError(ServiceError):
    """Errors reported by a speech synthesis or recognition platform"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, service_name="Speech", operation=operation, details=details)


class ConfigurationError(RoleplayBaseException):
    """Errors in system configuration and initialization"""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.component = component

        if component:
            self.details['component'] = component


# Convenience functions for creating common errors

def validation_error(message: str, field: str, value: Any = None) -> DialogueValidationError:
    """Create a validation error with field context."""
    return DialogueValidationError(message, field=field, value=value)


def speech_error(message: str, operation: str = None) -> SpeechServiceError:
    """Create a speech service error with operation context."""
    return SpeechServiceError(message, operation=operation)
