from typing import List, Literal, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from university_api.exceptions import ValidationError
from university_api.models.tarea import EstadoAsignacion


class AsignacionRef(BaseModel):
    """Destinatario de una tarea, tal como llega en el campo ``asignaciones``"""
    usuario_id: int
    usuario_tipo: Literal["personal", "directivo"] = "personal"


_asignaciones_adapter = TypeAdapter(List[AsignacionRef])


def parse_asignaciones(raw: Optional[str]) -> List[AsignacionRef]:
    """
    Decodifica la lista JSON de asignaciones enviada en el formulario.

    Raises:
        ValidationError: si el JSON está mal formado o la lista está vacía
    """
    try:
        asignaciones = _asignaciones_adapter.validate_json(raw or "")
    except PydanticValidationError:
        raise ValidationError("Formato de asignaciones inválido")

    if not asignaciones:
        raise ValidationError("Debe asignar al menos un usuario")
    return asignaciones


class AsignacionEstadoUpdate(BaseModel):
    estado: EstadoAsignacion
    comentarios: Optional[str] = None
    usuario_id: Optional[int] = None
    usuario_tipo: Optional[Literal["superadmin", "directivo", "personal"]] = None
