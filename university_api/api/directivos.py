import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from university_api.database import get_db
from university_api.exceptions import ConflictError, NotFoundError, ValidationError
from university_api.models.actor import Directivo
from university_api.models.direccion import Direccion
from university_api.schemas.actor import DirectivoCreate, DirectivoUpdate
from university_api.services.auth import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize(directivo: Directivo) -> dict:
    return {
        "id": directivo.id,
        "nombre_completo": directivo.nombre_completo,
        "cargo": directivo.cargo,
        "direccion_id": directivo.direccion_id,
        "direccion_nombre": directivo.direccion_nombre,
        "email": directivo.email,
        "created_at": directivo.created_at.isoformat() if directivo.created_at else None,
    }


def _check_direccion(db: Session, direccion_id: int) -> None:
    if not db.query(Direccion.id).filter(Direccion.id == direccion_id).first():
        raise ValidationError("Dirección no encontrada")


def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    query = db.query(Directivo.id).filter(Directivo.email == email)
    if exclude_id is not None:
        query = query.filter(Directivo.id != exclude_id)
    return query.first() is not None


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("El email ya está registrado")


@router.get("/directivos")
def list_directivos(db: Session = Depends(get_db)) -> Any:
    directivos = (
        db.query(Directivo)
        .options(joinedload(Directivo.direccion))
        .order_by(Directivo.nombre_completo)
        .all()
    )
    return {"success": True, "data": [_serialize(d) for d in directivos]}


@router.post("/directivos", status_code=status.HTTP_201_CREATED)
def create_directivo(
    directivo_data: DirectivoCreate,
    db: Session = Depends(get_db)
) -> Any:
    if not directivo_data.password:
        raise ValidationError("Todos los campos son requeridos")
    _check_direccion(db, directivo_data.direccion_id)
    if _email_taken(db, directivo_data.email):
        raise ConflictError("El email ya está registrado")

    directivo = Directivo(
        nombre_completo=directivo_data.nombre_completo,
        cargo=directivo_data.cargo,
        direccion_id=directivo_data.direccion_id,
        email=directivo_data.email,
        hashed_password=auth_service.get_password_hash(directivo_data.password),
    )
    db.add(directivo)
    _commit(db)
    db.refresh(directivo)

    logger.info(f"Directivo creado: {directivo.email}")
    return {
        "success": True,
        "message": "Directivo creado exitosamente",
        "directivoId": directivo.id,
    }


@router.put("/directivos/{directivo_id}")
def update_directivo(
    directivo_id: int,
    directivo_data: DirectivoUpdate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Editar un directivo; la contraseña solo cambia si se envía una nueva
    """
    directivo = db.query(Directivo).filter(Directivo.id == directivo_id).first()
    if not directivo:
        raise NotFoundError("Directivo no encontrado")

    _check_direccion(db, directivo_data.direccion_id)
    if _email_taken(db, directivo_data.email, exclude_id=directivo_id):
        raise ConflictError("El email ya está registrado")

    directivo.nombre_completo = directivo_data.nombre_completo
    directivo.cargo = directivo_data.cargo
    directivo.direccion_id = directivo_data.direccion_id
    directivo.email = directivo_data.email
    if directivo_data.password and directivo_data.password.strip():
        directivo.hashed_password = auth_service.get_password_hash(directivo_data.password)
    _commit(db)

    return {"success": True, "message": "Directivo actualizado exitosamente"}


@router.delete("/directivos/{directivo_id}")
def delete_directivo(directivo_id: int, db: Session = Depends(get_db)) -> Any:
    directivo = db.query(Directivo).filter(Directivo.id == directivo_id).first()
    if not directivo:
        raise NotFoundError("Directivo no encontrado")

    db.delete(directivo)
    db.commit()

    logger.info(f"Directivo {directivo_id} eliminado")
    return {"success": True, "message": "Directivo eliminado exitosamente"}
