import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from university_api.database import get_db
from university_api.exceptions import ConflictError
from university_api.models.direccion import Direccion
from university_api.schemas.actor import DireccionCreate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/direcciones")
def list_direcciones(db: Session = Depends(get_db)) -> Any:
    direcciones = db.query(Direccion).order_by(Direccion.nombre).all()
    return {
        "success": True,
        "data": [
            {
                "id": d.id,
                "nombre": d.nombre,
                "created_at": d.created_at.isoformat() if d.created_at else None,
            }
            for d in direcciones
        ],
    }


@router.post("/direcciones", status_code=status.HTTP_201_CREATED)
def create_direccion(
    direccion_data: DireccionCreate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Crear una nueva dirección (unidad organizacional)
    """
    if db.query(Direccion).filter(Direccion.nombre == direccion_data.nombre).first():
        raise ConflictError("Esta dirección ya existe")

    direccion = Direccion(nombre=direccion_data.nombre)
    db.add(direccion)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Esta dirección ya existe")
    db.refresh(direccion)

    logger.info(f"Dirección creada: {direccion.nombre}")
    return {
        "success": True,
        "message": "Dirección creada exitosamente",
        "direccionId": direccion.id,
    }
