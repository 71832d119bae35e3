from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from university_api.database import get_db
from university_api.dependencies import get_optional_actor
from university_api.exceptions import NotFoundError
from university_api.models.actor import ActorRole
from university_api.schemas.tarea import AsignacionEstadoUpdate
from university_api.services.actors import ActorRef
from university_api.services.tareas import CATEGORY, TareaService
from university_api.utils.storage import blob_store

router = APIRouter()


@router.get("/tareas/usuarios-disponibles")
def usuarios_disponibles(db: Session = Depends(get_db)) -> Any:
    """
    Personal al que se le pueden asignar tareas
    """
    usuarios = TareaService(db).available_assignees()
    return {"success": True, "data": usuarios, "metadata": {"total": len(usuarios)}}


@router.post("/tareas", status_code=status.HTTP_201_CREATED)
async def create_tarea(
    titulo: Optional[str] = Form(None),
    descripcion: Optional[str] = Form(None),
    fecha_entrega: Optional[str] = Form(None),
    creado_por_id: Optional[str] = Form(None),
    creado_por_tipo: Optional[str] = Form(ActorRole.SUPERADMIN.value),
    asignaciones: Optional[str] = Form(None),
    archivos: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db)
) -> Any:
    """
    Crear una tarea y asignarla a uno o más usuarios.

    ``asignaciones`` es una lista JSON: [{"usuario_id": 1, "usuario_tipo": "personal"}]
    """
    result = await TareaService(db).create_task(
        titulo=titulo,
        descripcion=descripcion,
        fecha_entrega=fecha_entrega,
        creado_por_id=creado_por_id,
        creado_por_tipo=creado_por_tipo,
        asignaciones=asignaciones,
        archivos=archivos,
    )
    return {"success": True, "message": "Tarea creada exitosamente", **result}


@router.get("/tareas")
def list_tareas(db: Session = Depends(get_db)) -> Any:
    tareas = TareaService(db).list_all_tasks()
    return {"success": True, "data": tareas, "total": len(tareas)}


@router.get("/tareas/archivo/{filename}")
def get_archivo(filename: str):
    if not blob_store.exists(CATEGORY, filename):
        raise NotFoundError("Archivo no encontrado")
    return FileResponse(blob_store.path_for(CATEGORY, filename))


@router.get("/tareas/personal/{usuario_id}/conteo")
def conteo_pendientes(
    usuario_id: int,
    tipo: str = Query(ActorRole.PERSONAL.value),
    db: Session = Depends(get_db)
) -> Any:
    """
    Número de tareas abiertas (pendientes o en progreso) de un usuario
    """
    return {"success": True, "data": {"pendientes": TareaService(db).count_pending(usuario_id, tipo)}}


@router.get("/tareas/personal/{usuario_id}")
def list_tareas_usuario(
    usuario_id: int,
    tipo: str = Query(ActorRole.PERSONAL.value),
    db: Session = Depends(get_db)
) -> Any:
    return {"success": True, "data": TareaService(db).list_tasks_for_assignee(usuario_id, tipo)}


@router.post("/tareas/completar/{asignacion_id}")
async def completar_asignacion(
    asignacion_id: int,
    comentarios: Optional[str] = Form(None),
    archivos: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db)
) -> Any:
    """
    Completar una asignación con una descripción y/o archivos de evidencia
    """
    result = await TareaService(db).complete_assignment(asignacion_id, comentarios, archivos)
    return {
        "success": True,
        "message": "¡Felicidades! Tarea completada exitosamente",
        "data": result,
    }


@router.post("/tareas/iniciar/{asignacion_id}")
def iniciar_asignacion(asignacion_id: int, db: Session = Depends(get_db)) -> Any:
    result = TareaService(db).start_assignment(asignacion_id)
    return {"success": True, "message": "Tarea en progreso", "data": result}


@router.put("/tareas/asignacion/{asignacion_id}")
def update_estado_asignacion(
    asignacion_id: int,
    estado_data: AsignacionEstadoUpdate,
    actor: Optional[ActorRef] = Depends(get_optional_actor),
    db: Session = Depends(get_db)
) -> Any:
    result = TareaService(db).update_assignment_state(asignacion_id, estado_data, actor)
    return {"success": True, "message": "Estado actualizado exitosamente", "data": result}


@router.delete("/tareas/archivo/{archivo_id}")
def delete_archivo(archivo_id: int, db: Session = Depends(get_db)) -> Any:
    result = TareaService(db).delete_attachment(archivo_id)
    return {"success": True, "message": "Archivo eliminado exitosamente", **result}


@router.get("/tareas/{tarea_id}")
def get_tarea(tarea_id: int, db: Session = Depends(get_db)) -> Any:
    return {"success": True, "data": TareaService(db).get_task(tarea_id)}


@router.put("/tareas/{tarea_id}")
async def update_tarea(
    tarea_id: int,
    titulo: Optional[str] = Form(None),
    descripcion: Optional[str] = Form(None),
    fecha_entrega: Optional[str] = Form(None),
    asignaciones: Optional[str] = Form(None),
    archivos: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db)
) -> Any:
    """
    Editar una tarea. Si se envían asignaciones, reemplazan a las actuales.
    """
    result = await TareaService(db).edit_task(
        tarea_id,
        titulo=titulo,
        descripcion=descripcion,
        fecha_entrega=fecha_entrega,
        asignaciones=asignaciones,
        archivos=archivos,
    )
    return {"success": True, "message": "Tarea actualizada exitosamente", **result}


@router.delete("/tareas/{tarea_id}")
def delete_tarea(tarea_id: int, db: Session = Depends(get_db)) -> Any:
    result = TareaService(db).delete_task(tarea_id)
    return {"success": True, "message": "Tarea eliminada exitosamente", **result}
