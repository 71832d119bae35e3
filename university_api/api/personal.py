import logging
import os
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session, joinedload

from university_api.config import settings
from university_api.database import get_db, transaction
from university_api.exceptions import ConflictError, NotFoundError, ValidationError
from university_api.models.actor import DEFAULT_AVATAR, Personal, photo_url
from university_api.models.direccion import Direccion
from university_api.services.auth import auth_service
from university_api.utils.images import compress_profile_photo
from university_api.utils.storage import StoredFile, blob_store
from university_api.utils.validation_utils import is_blank, safe_int_conversion

logger = logging.getLogger(__name__)

router = APIRouter()

CATEGORY = "personal"
FILE_PREFIX = "personal"


def _serialize(persona: Personal, foto_url: Optional[str]) -> dict:
    return {
        "id": persona.id,
        "nombre_completo": persona.nombre_completo,
        "puesto": persona.puesto,
        "direccion_id": persona.direccion_id,
        "direccion_nombre": persona.direccion_nombre,
        "email": persona.email,
        "foto_perfil": persona.foto_perfil,
        "foto_url": foto_url,
        "created_at": persona.created_at.isoformat() if persona.created_at else None,
    }


def _get_personal(db: Session, personal_id: int) -> Personal:
    persona = (
        db.query(Personal)
        .options(joinedload(Personal.direccion))
        .filter(Personal.id == personal_id)
        .first()
    )
    if not persona:
        raise NotFoundError("Personal no encontrado")
    return persona


def _validate_fields(db: Session, direccion_id, email: str, exclude_id: int = None) -> int:
    direccion_id = safe_int_conversion(direccion_id, "direccion_id", allow_none=False)
    if not db.query(Direccion.id).filter(Direccion.id == direccion_id).first():
        raise ValidationError("Dirección no encontrada")

    query = db.query(Personal.id).filter(Personal.email == email.strip())
    if exclude_id is not None:
        query = query.filter(Personal.id != exclude_id)
    if query.first():
        raise ConflictError("El email ya está registrado")
    return direccion_id


async def _store_photo(foto: Optional[UploadFile]) -> Optional[StoredFile]:
    """Guarda y comprime la foto; None si no se envió ninguna"""
    if foto is None or not foto.filename:
        return None
    stored = await blob_store.save_upload(
        foto,
        CATEGORY,
        FILE_PREFIX,
        max_size=settings.max_personal_photo_size,
        images_only=True,
    )
    return compress_profile_photo(blob_store, stored)


def _discard_photo(stored: Optional[StoredFile]) -> None:
    if stored is not None:
        blob_store.delete(stored.category, stored.filename)


@router.get("/personal")
def list_personal(db: Session = Depends(get_db)) -> Any:
    """
    Listar todo el personal; quienes no tienen foto reciben la URL del avatar por defecto
    """
    personal = (
        db.query(Personal)
        .options(joinedload(Personal.direccion))
        .order_by(Personal.nombre_completo)
        .all()
    )
    con_foto = sum(1 for p in personal if p.foto_perfil)
    return {
        "success": True,
        "data": [_serialize(p, p.foto_url or photo_url(DEFAULT_AVATAR)) for p in personal],
        "metadata": {
            "total": len(personal),
            "conFoto": con_foto,
            "sinFoto": len(personal) - con_foto,
        },
    }


@router.get("/personal/debug-fotos")
def debug_fotos(db: Session = Depends(get_db)) -> Any:
    if not settings.debug:
        raise NotFoundError("Not Found")

    personal = db.query(Personal).order_by(Personal.id).all()
    return {
        "success": True,
        "data": [
            {
                "id": p.id,
                "nombre": p.nombre_completo,
                "foto_perfil": p.foto_perfil,
                "existe_archivo": blob_store.exists(CATEGORY, p.foto_perfil),
                "url": p.foto_url or "Sin foto",
            }
            for p in personal
        ],
        "carpeta": str((blob_store.root / CATEGORY).resolve()),
        "archivos_en_carpeta": blob_store.list(CATEGORY),
    }


@router.get("/personal/foto/{filename}")
def get_foto(filename: str):
    """
    Servir la foto de un miembro del personal, o el avatar por defecto si no existe
    """
    if blob_store.exists(CATEGORY, filename):
        return FileResponse(blob_store.path_for(CATEGORY, filename))
    if os.path.exists(settings.default_avatar_path):
        return FileResponse(settings.default_avatar_path, media_type="image/png")
    raise NotFoundError("Foto no encontrada")


@router.get("/personal/{personal_id}")
def get_personal(personal_id: int, db: Session = Depends(get_db)) -> Any:
    persona = _get_personal(db, personal_id)
    return {"success": True, "data": _serialize(persona, persona.foto_url)}


@router.post("/personal", status_code=status.HTTP_201_CREATED)
async def create_personal(
    nombre_completo: Optional[str] = Form(None),
    puesto: Optional[str] = Form(None),
    direccion_id: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    foto: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
) -> Any:
    """
    Crear un miembro del personal con foto de perfil opcional
    """
    if any(is_blank(v) for v in (nombre_completo, puesto, direccion_id, email, password)):
        raise ValidationError("Todos los campos son requeridos")
    direccion = _validate_fields(db, direccion_id, email)

    stored = await _store_photo(foto)

    with transaction(db) as tx:
        tx.on_failure(_discard_photo, stored)
        persona = Personal(
            nombre_completo=nombre_completo.strip(),
            puesto=puesto.strip(),
            direccion_id=direccion,
            email=email.strip(),
            hashed_password=auth_service.get_password_hash(password),
            foto_perfil=stored.filename if stored else None,
        )
        db.add(persona)
        db.flush()
        personal_id = persona.id

    logger.info(f"Personal {personal_id} creado (foto: {stored.filename if stored else 'sin foto'})")
    return {
        "success": True,
        "message": "Personal creado exitosamente",
        "personalId": personal_id,
        "tieneFoto": stored is not None,
    }


@router.put("/personal/{personal_id}")
async def update_personal(
    personal_id: int,
    nombre_completo: Optional[str] = Form(None),
    puesto: Optional[str] = Form(None),
    direccion_id: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    foto: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
) -> Any:
    """
    Editar personal; una foto nueva reemplaza a la anterior
    """
    if any(is_blank(v) for v in (nombre_completo, puesto, direccion_id, email)):
        raise ValidationError("Nombre, puesto, dirección y email son requeridos")
    persona = _get_personal(db, personal_id)
    direccion = _validate_fields(db, direccion_id, email, exclude_id=personal_id)

    stored = await _store_photo(foto)
    foto_anterior = persona.foto_perfil

    with transaction(db) as tx:
        tx.on_failure(_discard_photo, stored)
        persona.nombre_completo = nombre_completo.strip()
        persona.puesto = puesto.strip()
        persona.direccion_id = direccion
        persona.email = email.strip()
        if not is_blank(password):
            persona.hashed_password = auth_service.get_password_hash(password)
        if stored:
            persona.foto_perfil = stored.filename

    if stored and foto_anterior:
        blob_store.delete(CATEGORY, foto_anterior)

    return {"success": True, "message": "Personal actualizado exitosamente"}


@router.delete("/personal/{personal_id}")
def delete_personal(personal_id: int, db: Session = Depends(get_db)) -> Any:
    persona = _get_personal(db, personal_id)
    foto = persona.foto_perfil

    with transaction(db):
        db.delete(persona)
    blob_store.delete(CATEGORY, foto)

    logger.info(f"Personal {personal_id} eliminado")
    return {"success": True, "message": "Personal eliminado exitosamente"}
