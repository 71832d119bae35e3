import logging
from typing import Any, Optional

from fastapi import APIRouter, File, UploadFile

from university_api.config import settings
from university_api.exceptions import ValidationError
from university_api.utils.storage import blob_store

logger = logging.getLogger(__name__)

router = APIRouter()

CATEGORY = "logos"
LOGO_NAME = "institution-logo"


def _logo_files():
    return [name for name in blob_store.list(CATEGORY) if name.startswith(LOGO_NAME)]


@router.post("/upload-logo")
async def upload_logo(logo: Optional[UploadFile] = File(None)) -> Any:
    """
    Subir el logo institucional; reemplaza al anterior sin importar su extensión
    """
    if logo is None or not logo.filename:
        raise ValidationError("No se recibió ningún archivo")

    stored = await blob_store.save_upload(
        logo, CATEGORY, LOGO_NAME, max_size=settings.max_logo_size, filename=LOGO_NAME
    )
    for name in _logo_files():
        if name != stored.filename:
            blob_store.delete(CATEGORY, name)
            logger.info(f"Logo anterior eliminado: {name}")

    return {
        "success": True,
        "message": "Logo subido exitosamente",
        "filename": stored.filename,
        "url": blob_store.public_url(CATEGORY, stored.filename),
    }


@router.delete("/delete-logo")
def delete_logo() -> Any:
    deleted_count = sum(1 for name in _logo_files() if blob_store.delete(CATEGORY, name))
    if not deleted_count:
        return {"success": True, "message": "No hay logo para eliminar", "deletedCount": 0}
    return {"success": True, "message": "Logo eliminado", "deletedCount": deleted_count}


@router.get("/check-logo")
def check_logo() -> Any:
    files = _logo_files()
    if not files:
        return {"success": False, "exists": False, "message": "No hay logo"}

    filename = files[0]
    return {
        "success": True,
        "exists": True,
        "filename": filename,
        "size": blob_store.path_for(CATEGORY, filename).stat().st_size,
        "url": blob_store.public_url(CATEGORY, filename),
    }
