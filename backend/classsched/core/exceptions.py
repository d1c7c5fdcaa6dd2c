class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class Unauthorized(AppError):
    """Raised when a request carries no valid session."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)

class Forbidden(AppError):
    """Raised when the signed-in user may not touch the target record."""
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status_code=403)

class ValidationFailed(AppError):
    """Raised when a payload is missing fields or carries malformed values."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class NotFound(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str):
        super().__init__(f"{resource_type} not found", status_code=404)

class Conflict(AppError):
    """Raised when a write would duplicate an existing record."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class StorageError(AppError):
    """Raised when the persistence layer fails unexpectedly."""
    def __init__(self, message: str = "Internal server error", details: dict = None):
        super().__init__(message, status_code=500, details=details)

class RateLimited(AppError):
    """Raised when a client exceeds the request budget for a scope."""
    def __init__(self, scope: str, retry_after: int):
        super().__init__(
            f"Too many requests for {scope}. Try again in {retry_after} second(s).",
            status_code=429,
        )
        self.headers = {"Retry-After": str(retry_after)}
