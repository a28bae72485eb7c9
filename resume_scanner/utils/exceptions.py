"""
Custom Exception Classes for the Resume Scanner
"""
from typing import Dict, Any
from fastapi import HTTPException


class ResumeScannerError(Exception):
    """Base exception for the resume scanner"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class TextExtractionError(ResumeScannerError):
    """Raised when a source file cannot be turned into text"""

    def __init__(self, message: str, file_path: str = None, extension: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if file_path:
            details['file_path'] = file_path
        if extension:
            details['extension'] = extension
        super().__init__(message, error_code="TEXT_EXTRACTION_ERROR", details=details, **kwargs)


class ConfigurationError(ResumeScannerError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class ExternalServiceError(ResumeScannerError):
    """Raised when external service calls fail"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        self.status_code = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


class TransientServiceError(ExternalServiceError):
    """A 429/503 answer that is worth another attempt"""

    def __init__(self, message: str, retry_after: float = None, **kwargs):
        self.retry_after = retry_after
        super().__init__(message, **kwargs)


class OperationCancelled(ResumeScannerError):
    """Raised when the caller's cancel signal fires"""

    def __init__(self, message: str = "Operation cancelled", operation: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        super().__init__(message, error_code="OPERATION_CANCELLED", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: ResumeScannerError) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ConfigurationError: 400,
        TextExtractionError: 500,
        ExternalServiceError: 502,
        OperationCancelled: 499
    }

    status_code = next(
        (code for exc_type, code in status_code_mapping.items() if isinstance(exc, exc_type)),
        500
    )

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)
