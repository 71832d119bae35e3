from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from university_api.models.comunicado import EstadoComunicado


class ComunicadoBase(BaseModel):
    titulo: str
    contenido: str
    link_externo: Optional[str] = None

    @field_validator('titulo', 'contenido')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Título, contenido y creador son requeridos')
        return v.strip()

    @field_validator('link_externo')
    @classmethod
    def empty_link_is_none(cls, v):
        return v.strip() or None if v else None


class ComunicadoCreate(ComunicadoBase):
    publicado_por_id: int


class ComunicadoUpdate(ComunicadoBase):
    estado: Optional[EstadoComunicado] = None


class ComunicadoResponse(BaseModel):
    id: int
    titulo: str
    contenido: str
    link_externo: Optional[str] = None
    publicado_por_id: Optional[int] = None
    publicado_por_nombre: Optional[str] = None
    estado: str
    fecha_publicacion: datetime

    class Config:
        from_attributes = True
