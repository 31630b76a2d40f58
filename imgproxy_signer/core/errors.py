import traceback
from typing import Dict, Any, Optional


# Context keys that must never leave the process in an error payload
SENSITIVE_CONTEXT_KEYS = ("key", "salt", "secret", "password", "token")


class ImgproxySignerError(Exception):
    """Base exception class for imgproxy URL building and signing.

    This provides a standardized way to handle errors with detailed context.
    """
    def __init__(self,
                 message: str,
                 error_code: str = "internal_error",
                 context: Optional[Dict[str, Any]] = None,
                 original_exception: Optional[Exception] = None):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.original_exception = original_exception
        self.traceback = traceback.format_exc() if original_exception else None

        # Add original exception details to context if available
        if original_exception:
            self.context.update({
                "original_error_type": type(original_exception).__name__,
                "original_error": str(original_exception)
            })

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary suitable for structured reporting."""
        result = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }

        # Include non-sensitive context information
        safe_context = {}
        for key, value in self.context.items():
            if key not in SENSITIVE_CONTEXT_KEYS and value is not None:
                safe_context[key] = value

        if safe_context:
            result["details"] = safe_context

        return result


class OptionValidationError(ImgproxySignerError, ValueError):
    """Error for an invalid processing option argument."""
    def __init__(self, message: str, field: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        if field:
            context = context or {}
            context["field"] = field
            message = f"Invalid value for '{field}': {message}"

        super().__init__(
            message=message,
            error_code="validation_error",
            context=context
        )


class ConfigurationError(ImgproxySignerError):
    """Error for an inconsistent or unusable signing configuration."""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None, original_exception: Optional[Exception] = None):
        super().__init__(
            message=message,
            error_code="configuration_error",
            context=context,
            original_exception=original_exception
        )


def get_error_response(error: Exception) -> Dict[str, Any]:
    """Convert any exception to a standardized error payload.

    Args:
        error: The exception to convert

    Returns:
        A dictionary with error details
    """
    if isinstance(error, ImgproxySignerError):
        return error.to_dict()

    return ImgproxySignerError(
        message=str(error),
        error_code="internal_error",
        original_exception=error
    ).to_dict()
