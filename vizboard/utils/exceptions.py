# vizboard/utils/exceptions.py
from typing import Optional, Dict, Any
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception"""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        detail = {
            "success": False,
            "error": self.error_code,
            "message": message,
            "details": details or {},
        }
        super().__init__(status_code=status_code, detail=detail)

    def __str__(self) -> str:
        return self.message


class ValidationError(APIException):
    """Validation error"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        details = {}
        if field:
            details["field"] = field

        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class AuthenticationError(APIException):
    """Authentication failed"""

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: str = "AUTHENTICATION_ERROR",
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            error_code=error_code,
        )


class InvalidTokenError(AuthenticationError):
    """Bearer token expired, tampered with, or no longer maps to a user"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message, error_code="INVALID_TOKEN")


class InvalidCredentialsError(AuthenticationError):
    """Login failed; the message never says which half was wrong"""

    def __init__(self):
        super().__init__(
            message="Invalid email or password", error_code="INVALID_CREDENTIALS"
        )


class AuthorizationError(APIException):
    """Authorization failed"""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            error_code="AUTHORIZATION_ERROR",
        )


class ResourceNotFoundError(APIException):
    """Resource not found"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=f"{resource_type} '{resource_id}' not found",
            error_code="RESOURCE_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class AlreadyExistsError(APIException):
    """Unique natural key already taken"""

    def __init__(self, resource_type: str, resource_id: str, message: str = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            message=message or f"{resource_type} '{resource_id}' already exists",
            error_code="ALREADY_EXISTS",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class FileTooLargeError(APIException):
    """File size exceeds limit"""

    def __init__(self, file_size: int, max_size: int):
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            message=f"File size ({file_size} bytes) exceeds maximum allowed size ({max_size} bytes)",
            error_code="FILE_TOO_LARGE",
            details={"file_size": file_size, "max_size": max_size},
        )


class InvalidFileTypeError(APIException):
    """Invalid file type"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            message=f"File type '{file_type}' is not supported. Allowed types: {', '.join(allowed_types)}",
            error_code="INVALID_FILE_TYPE",
            details={"file_type": file_type, "allowed_types": allowed_types},
        )


class CsvReadError(APIException):
    """CSV stream could not be read or parsed"""

    def __init__(self, csv_path: str, error: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to read CSV file: {error}",
            error_code="CSV_READ_ERROR",
            details={"csv_path": csv_path, "error": error},
        )


def handle_exception(logger, exception: Exception, is_production: bool) -> Dict[str, Any]:
    """Log an unexpected exception and build the 500 response body"""
    if isinstance(exception, APIException):
        logger.error(exception.message, error_code=exception.error_code)
        return exception.detail

    logger.exception("Unexpected error occurred", error_type=type(exception).__name__)
    return {
        "success": False,
        "error": "INTERNAL_ERROR",
        "message": (
            "An unexpected error occurred" if is_production else str(exception)
        ),
        "details": {"error_type": type(exception).__name__},
    }
