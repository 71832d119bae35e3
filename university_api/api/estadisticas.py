from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy.orm import Session

from university_api.database import get_db
from university_api.models import Comunicado, Direccion, Directivo, EstadoComunicado, Personal, SuperUser

router = APIRouter()


@router.get("/estadisticas")
def get_estadisticas(db: Session = Depends(get_db)) -> Any:
    """
    Conteos generales para el panel de administración
    """
    def count(column, *criteria):
        return db.query(func.count(column)).filter(*criteria).scalar()

    return {
        "success": True,
        "data": {
            "usuarios": count(SuperUser.id),
            "direcciones": count(Direccion.id),
            "directivos": count(Directivo.id),
            "personal": count(Personal.id),
            "comunicados": count(
                Comunicado.id, Comunicado.estado == EstadoComunicado.PUBLICADO.value
            ),
        },
    }


@router.get("/test")
def test_connection(db: Session = Depends(get_db)) -> Any:
    """
    Verifica la conexión a la base de datos
    """
    result = db.execute(text("SELECT 1 + 1")).scalar()
    return {
        "success": True,
        "message": "API funcionando correctamente",
        "dbTest": result,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
