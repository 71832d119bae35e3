from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class SuperUserCreate(BaseModel):
    username: str
    email: EmailStr
    password: str

    @field_validator('username', 'password')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Todos los campos son obligatorios')
        return v


class DireccionCreate(BaseModel):
    nombre: str

    @field_validator('nombre')
    @classmethod
    def validate_nombre(cls, v):
        if not v or not v.strip():
            raise ValueError('El nombre es requerido')
        return v.strip()


class DirectivoBase(BaseModel):
    nombre_completo: str
    cargo: str
    direccion_id: int
    email: EmailStr

    @field_validator('nombre_completo', 'cargo')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Todos los campos son requeridos')
        return v.strip()


class DirectivoCreate(DirectivoBase):
    password: str


class DirectivoUpdate(DirectivoBase):
    # Si no se envía se conserva la contraseña actual
    password: Optional[str] = None
