import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload

from university_api.database import get_db
from university_api.exceptions import NotFoundError, ValidationError
from university_api.models.actor import SuperUser
from university_api.models.comunicado import Comunicado, EstadoComunicado
from university_api.schemas.common import parse_limit
from university_api.schemas.comunicado import ComunicadoCreate, ComunicadoResponse, ComunicadoUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _query(db: Session):
    return (
        db.query(Comunicado)
        .options(joinedload(Comunicado.publicado_por))
        .order_by(Comunicado.fecha_publicacion.desc(), Comunicado.id.desc())
    )


def _published(db: Session):
    return _query(db).filter(Comunicado.estado == EstadoComunicado.PUBLICADO.value)


def _dump(comunicados) -> list:
    return [ComunicadoResponse.model_validate(c).model_dump(mode="json") for c in comunicados]


def _get_comunicado(db: Session, comunicado_id: int) -> Comunicado:
    comunicado = _query(db).filter(Comunicado.id == comunicado_id).first()
    if not comunicado:
        raise NotFoundError("Comunicado no encontrado")
    return comunicado


@router.post("/comunicados", status_code=status.HTTP_201_CREATED)
def create_comunicado(
    comunicado_data: ComunicadoCreate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Publicar un comunicado; solo un super usuario puede publicar
    """
    if not db.query(SuperUser.id).filter(SuperUser.id == comunicado_data.publicado_por_id).first():
        raise ValidationError("El publicador debe ser un super usuario existente")

    comunicado = Comunicado(
        titulo=comunicado_data.titulo,
        contenido=comunicado_data.contenido,
        link_externo=comunicado_data.link_externo,
        publicado_por_id=comunicado_data.publicado_por_id,
        estado=EstadoComunicado.PUBLICADO.value,
    )
    db.add(comunicado)
    db.commit()
    db.refresh(comunicado)

    logger.info(f"Comunicado {comunicado.id} publicado")
    return {
        "success": True,
        "message": "Comunicado publicado exitosamente",
        "comunicadoId": comunicado.id,
    }


@router.get("/comunicados")
def list_comunicados(db: Session = Depends(get_db)) -> Any:
    return {"success": True, "data": _dump(_published(db).all())}


@router.get("/comunicados-admin")
def list_comunicados_admin(db: Session = Depends(get_db)) -> Any:
    """
    Todos los comunicados, sin importar su estado
    """
    return {"success": True, "data": _dump(_query(db).all())}


@router.get("/comunicados-recientes")
def list_comunicados_recientes(
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db)
) -> Any:
    limit = parse_limit(limit)
    return {
        "success": True,
        "data": _dump(_published(db).limit(limit).all()),
        "limit": limit,
    }


@router.get("/comunicados/{comunicado_id}")
def get_comunicado(comunicado_id: int, db: Session = Depends(get_db)) -> Any:
    comunicado = _get_comunicado(db, comunicado_id)
    return {"success": True, "data": _dump([comunicado])[0]}


@router.put("/comunicados/{comunicado_id}")
def update_comunicado(
    comunicado_id: int,
    comunicado_data: ComunicadoUpdate,
    db: Session = Depends(get_db)
) -> Any:
    comunicado = _get_comunicado(db, comunicado_id)

    comunicado.titulo = comunicado_data.titulo
    comunicado.contenido = comunicado_data.contenido
    comunicado.link_externo = comunicado_data.link_externo
    if comunicado_data.estado is not None:
        comunicado.estado = comunicado_data.estado.value
    db.commit()

    return {"success": True, "message": "Comunicado actualizado exitosamente"}


@router.delete("/comunicados/{comunicado_id}")
def delete_comunicado(comunicado_id: int, db: Session = Depends(get_db)) -> Any:
    comunicado = _get_comunicado(db, comunicado_id)
    db.delete(comunicado)
    db.commit()

    logger.info(f"Comunicado {comunicado_id} eliminado")
    return {"success": True, "message": "Comunicado eliminado exitosamente"}
