from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from university_api.config import settings
from university_api.database import get_db
from university_api.exceptions import NotFoundError
from university_api.schemas.actividad import ActividadEstadoUpdate
from university_api.services.actividades import CATEGORY, ActividadService
from university_api.utils.storage import blob_store

router = APIRouter()


@router.post("/actividades", status_code=status.HTTP_201_CREATED)
async def create_actividad(
    titulo: Optional[str] = Form(None),
    descripcion: Optional[str] = Form(None),
    tipo_actividad: Optional[str] = Form(None),
    fecha_inicio: Optional[str] = Form(None),
    fecha_fin: Optional[str] = Form(None),
    direccion_id: Optional[str] = Form(None),
    creado_por_id: Optional[str] = Form(None),
    creado_por_tipo: Optional[str] = Form(None),
    imagenes: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db)
) -> Any:
    """
    Crear una actividad con hasta cinco imágenes
    """
    result = await ActividadService(db).create_activity(
        titulo=titulo,
        descripcion=descripcion,
        tipo_actividad=tipo_actividad,
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
        direccion_id=direccion_id,
        creado_por_id=creado_por_id,
        creado_por_tipo=creado_por_tipo,
        imagenes=imagenes,
    )
    return {"success": True, "message": "Actividad creada exitosamente", **result}


@router.get("/actividades/todas")
def list_todas_actividades(db: Session = Depends(get_db)) -> Any:
    actividades = ActividadService(db).list_all()
    return {
        "success": True,
        "data": actividades,
        "total": len(actividades),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/actividades/direccion/{direccion_id}")
def list_actividades_direccion(direccion_id: int, db: Session = Depends(get_db)) -> Any:
    return {"success": True, "data": ActividadService(db).list_by_direccion(direccion_id)}


@router.put("/actividades/{actividad_id}/estado")
def update_estado_actividad(
    actividad_id: int,
    estado_data: ActividadEstadoUpdate,
    db: Session = Depends(get_db)
) -> Any:
    result = ActividadService(db).update_state(actividad_id, estado_data.estado)
    return {"success": True, "message": "Estado actualizado", **result}


@router.delete("/actividades/{actividad_id}")
def delete_actividad(actividad_id: int, db: Session = Depends(get_db)) -> Any:
    result = ActividadService(db).delete_activity(actividad_id)
    return {"success": True, "message": "Actividad eliminada exitosamente", **result}


@router.get("/debug/uploads")
def debug_uploads() -> Any:
    if not settings.debug:
        raise NotFoundError("Not Found")

    archivos = blob_store.list(CATEGORY)
    return {
        "success": True,
        "uploadDir": str((blob_store.root / CATEGORY).resolve()),
        "totalArchivos": len(archivos),
        "archivos": [
            {
                "nombre": nombre,
                "tamano": blob_store.path_for(CATEGORY, nombre).stat().st_size,
                "url": blob_store.public_url(CATEGORY, nombre),
            }
            for nombre in archivos
        ],
    }
