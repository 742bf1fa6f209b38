"""
Domain errors shared by repositories, services and the API layer.

Each error carries the HTTP status it is reported with; ``main`` turns them
into ``{"success": false, "message": ...}`` responses.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra

    def payload(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": False, "message": self.message}
        data.update(self.extra)
        return data


class ValidationError(ServiceError):
    status_code = 400


class InvalidFieldError(ValidationError):
    pass


class ConflictError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class UnknownDeviceError(NotFoundError):
    pass


class NoActiveSessionError(NotFoundError):
    pass


class AuthenticationError(ServiceError):
    status_code = 401


class StorageError(ServiceError):
    status_code = 500

    def __init__(self, message: str = "Storage failure", cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
