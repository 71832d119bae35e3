"""
Error taxonomy of the API.

Every class is an ``HTTPException`` so that routes and services can raise
them directly and the HTTP exception handler in ``main`` renders the
``{success: false, error}`` envelope.
"""
from typing import Optional

from fastapi import HTTPException, status


class APIError(HTTPException):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Error interno del servidor"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(APIError):
    """Missing or malformed required fields"""
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_detail = "Datos inválidos"


class UnauthorizedError(APIError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    default_detail = "Credenciales inválidas"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotFoundError(APIError):
    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Recurso no encontrado"


class ConflictError(APIError):
    """Unique constraint violations (duplicate email, duplicate name)"""
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_detail = "El registro ya existe"


class UnavailableError(APIError):
    """Datastore or filesystem unreachable"""
    default_detail = "Servicio no disponible"
