from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """HTTP error carrying a machine-readable code and optional per-field details."""

    code = "INTERNAL_ERROR"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Error interno del servidor"

    def __init__(self, message: str | None = None, details: Any = None, headers: dict | None = None):
        self.message = message or self.message_default
        self.details = details
        super().__init__(status_code=self.status_code_default, detail=self.message, headers=headers)


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Datos inválidos"


class InvalidCredentialsException(AppException):
    code = "INVALID_CREDENTIALS"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Credenciales inválidas"

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class TokenInvalidException(AppException):
    code = "INVALID_TOKEN"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Token inválido"

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "No autorizado"

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenException(AppException):
    code = "FORBIDDEN"
    status_code_default = status.HTTP_403_FORBIDDEN
    message_default = "Requiere rol admin"


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Recurso"):
        self.resource = resource
        super().__init__(f"{resource} no encontrado")


class ConflictException(AppException):
    code = "CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT
    message_default = "El recurso ya existe"


class ReferenceException(AppException):
    code = "REFERENCE_ERROR"
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Recurso referenciado inexistente"


class RequiredFieldException(AppException):
    code = "REQUIRED_FIELD_ERROR"
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Falta un campo requerido"


class InternalErrorException(AppException):
    pass
