from .actor import ActorRole, SuperUser, Directivo, Personal, ASSIGNABLE_ROLES
from .direccion import Direccion
from .actividad import Actividad, ActividadImagen, EstadoActividad
from .comunicado import Comunicado, EstadoComunicado
from .tarea import (
    Tarea,
    TareaAsignacion,
    TareaArchivo,
    TareaHistorial,
    EstadoAsignacion,
    AccionHistorial,
)

__all__ = [
    "ActorRole",
    "ASSIGNABLE_ROLES",
    "SuperUser",
    "Directivo",
    "Personal",
    "Direccion",
    "Actividad",
    "ActividadImagen",
    "EstadoActividad",
    "Comunicado",
    "EstadoComunicado",
    "Tarea",
    "TareaAsignacion",
    "TareaArchivo",
    "TareaHistorial",
    "EstadoAsignacion",
    "AccionHistorial",
]
