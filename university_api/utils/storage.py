import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from fastapi import UploadFile

from university_api.config import settings
from university_api.exceptions import NotFoundError, UnavailableError, ValidationError

logger = logging.getLogger(__name__)

CATEGORIES = ("actividades", "personal", "tareas", "logos")


@dataclass
class StoredFile:
    """Archivo ya escrito en el almacenamiento"""
    category: str
    filename: str
    original_name: str
    content_type: Optional[str]
    size: int


class BlobStore:
    """Almacenamiento local de archivos subidos, organizado por categoría"""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.upload_dir)

    def ensure_directories(self) -> None:
        """Asegura que los directorios de cada categoría existan"""
        for category in CATEGORIES:
            (self.root / category).mkdir(parents=True, exist_ok=True)

    def _category_dir(self, category: str) -> Path:
        if category not in CATEGORIES:
            raise ValueError(f"Categoría de almacenamiento desconocida: {category}")
        directory = self.root / category
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def path_for(self, category: str, filename: str) -> Path:
        """Ruta de un archivo almacenado; rechaza nombres con componentes de ruta"""
        if not filename or os.path.basename(filename) != filename or filename in (".", ".."):
            raise NotFoundError("Archivo no encontrado")
        return self._category_dir(category) / filename

    @staticmethod
    def generate_filename(prefix: str, original_filename: Optional[str]) -> str:
        """Genera un nombre único: <prefijo>-<epoch ms>-<aleatorio>.<ext>"""
        extension = Path(original_filename or "").suffix.lower()
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}"
        return f"{prefix}-{unique_suffix}{extension}"

    async def save_upload(
        self,
        upload: UploadFile,
        category: str,
        prefix: str,
        max_size: int,
        images_only: bool = False,
        filename: Optional[str] = None,
    ) -> StoredFile:
        """
        Valida y escribe un archivo subido; no toca la base de datos.

        Si se indica ``filename`` se usa ese nombre (más la extensión original)
        en lugar de uno generado a partir de ``prefix``.
        """
        if images_only and not (upload.content_type or "").startswith("image/"):
            raise ValidationError("Solo se permiten imágenes")

        content = await upload.read()
        if len(content) > max_size:
            raise ValidationError(
                f"El archivo {upload.filename} excede el tamaño máximo de {max_size // (1024 * 1024)}MB"
            )

        if filename:
            filename = f"{filename}{Path(upload.filename or '').suffix.lower()}"
        else:
            filename = self.generate_filename(prefix, upload.filename)
        self.store_bytes(category, filename, content)
        logger.info(f"Archivo guardado: {category}/{filename} ({len(content)} bytes)")

        return StoredFile(
            category=category,
            filename=filename,
            original_name=upload.filename or filename,
            content_type=upload.content_type,
            size=len(content),
        )

    async def save_uploads(
        self,
        uploads: Sequence[UploadFile],
        category: str,
        prefix: str,
        max_size: int,
        max_files: int,
        images_only: bool = False,
    ) -> List[StoredFile]:
        """Guarda todos los archivos o ninguno"""
        uploads = [upload for upload in uploads or [] if upload is not None and upload.filename]
        if len(uploads) > max_files:
            raise ValidationError(f"Máximo {max_files} archivos por solicitud")

        stored: List[StoredFile] = []
        try:
            for upload in uploads:
                stored.append(await self.save_upload(upload, category, prefix, max_size, images_only))
        except Exception:
            self.discard(stored)
            raise
        return stored

    def store_bytes(self, category: str, filename: str, content: bytes) -> Path:
        file_path = self.path_for(category, filename)
        try:
            with open(file_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Error al escribir {category}/{filename}: {str(e)}")
            raise UnavailableError("No se pudo guardar el archivo")
        return file_path

    def delete(self, category: str, filename: Optional[str]) -> bool:
        """
        Elimina un archivo. Es una operación de mejor esfuerzo: los errores
        se registran y se devuelve False, nunca se propagan.
        """
        if not filename:
            return False
        try:
            file_path = self.path_for(category, filename)
            if file_path.exists():
                file_path.unlink()
                logger.info(f"Archivo local eliminado: {file_path}")
                return True
            return False
        except Exception as e:
            logger.warning(f"Error al eliminar archivo {category}/{filename}: {str(e)}")
            return False

    def discard(self, files: Iterable[StoredFile]) -> int:
        """Elimina archivos guardados por una operación que no llegó a completarse"""
        return sum(1 for stored in files if self.delete(stored.category, stored.filename))

    def exists(self, category: str, filename: Optional[str]) -> bool:
        if not filename:
            return False
        try:
            return self.path_for(category, filename).is_file()
        except NotFoundError:
            return False

    def list(self, category: str) -> List[str]:
        """Lista los archivos de una categoría"""
        directory = self._category_dir(category)
        return sorted(f.name for f in directory.iterdir() if f.is_file())

    def public_url(self, category: str, filename: str) -> str:
        return settings.public_url(f"/uploads/{category}/{filename}")


# Instancia global del almacenamiento
blob_store = BlobStore()
