from pydantic import BaseModel

from university_api.models.actividad import EstadoActividad


class ActividadEstadoUpdate(BaseModel):
    estado: EstadoActividad
