import logging
from typing import List, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy.orm import Session, joinedload

from university_api.config import settings
from university_api.database import transaction
from university_api.exceptions import NotFoundError, ValidationError
from university_api.models.actividad import Actividad, ActividadImagen, EstadoActividad
from university_api.models.direccion import Direccion
from university_api.services.actors import ActorDirectory, ActorRef
from university_api.utils.storage import BlobStore, blob_store
from university_api.utils.validation_utils import clean_text, is_blank, parse_fecha, safe_int_conversion

logger = logging.getLogger(__name__)

CATEGORY = "actividades"
FILE_PREFIX = "actividad"
SIN_CREADOR = "Sistema"


def serialize_imagen(imagen: ActividadImagen) -> dict:
    return {
        "id": imagen.id,
        "actividad_id": imagen.actividad_id,
        "nombre_archivo": imagen.nombre_archivo,
        "ruta_archivo": imagen.ruta_archivo,
        "tipo_mime": imagen.tipo_mime,
        "tamano": imagen.tamano,
        "fecha_subida": imagen.fecha_subida.isoformat() if imagen.fecha_subida else None,
        "url": imagen.url,
    }


class ActividadService:
    def __init__(self, db: Session, store: BlobStore = blob_store):
        self.db = db
        self.store = store
        self.directory = ActorDirectory(db)

    async def create_activity(
        self,
        titulo: Optional[str],
        descripcion: Optional[str],
        tipo_actividad: Optional[str],
        fecha_inicio: Optional[str],
        fecha_fin: Optional[str],
        direccion_id,
        creado_por_id,
        creado_por_tipo: Optional[str],
        imagenes: Optional[Sequence[UploadFile]] = None,
    ) -> dict:
        required = (titulo, tipo_actividad, fecha_inicio, direccion_id, creado_por_id, creado_por_tipo)
        if any(is_blank(v) for v in required):
            raise ValidationError(
                "Título, tipo de actividad, fecha de inicio, dirección, creador y tipo son requeridos"
            )

        inicio = parse_fecha(fecha_inicio, "fecha_inicio")
        fin = parse_fecha(fecha_fin, "fecha_fin", allow_none=True)
        if fin and fin < inicio:
            raise ValidationError("La fecha de fin no puede ser anterior a la fecha de inicio")

        direccion_id = safe_int_conversion(direccion_id, "direccion_id", allow_none=False)
        if not self.db.query(Direccion.id).filter(Direccion.id == direccion_id).first():
            raise ValidationError("Dirección no encontrada")

        try:
            creador = ActorRef.of(
                safe_int_conversion(creado_por_id, "creado_por_id", allow_none=False),
                creado_por_tipo,
            )
        except ValueError:
            raise ValidationError(f"Tipo de usuario inválido: {creado_por_tipo}")
        if not self.directory.exists(creador):
            raise ValidationError(f"Usuario {creador.role.value} con ID {creador.id} no encontrado")

        stored = await self.store.save_uploads(
            imagenes,
            CATEGORY,
            FILE_PREFIX,
            max_size=settings.max_activity_image_size,
            max_files=settings.max_activity_images,
            images_only=True,
        )

        with transaction(self.db) as tx:
            tx.on_failure(self.store.discard, stored)

            actividad = Actividad(
                titulo=titulo.strip(),
                descripcion=clean_text(descripcion),
                tipo_actividad=tipo_actividad.strip(),
                fecha_inicio=inicio,
                fecha_fin=fin,
                direccion_id=direccion_id,
                creado_por_id=creador.id,
                creado_por_tipo=creador.role.value,
                estado=EstadoActividad.PENDIENTE.value,
            )
            actividad.imagenes = [
                ActividadImagen(
                    nombre_archivo=archivo.original_name,
                    ruta_archivo=archivo.filename,
                    tipo_mime=archivo.content_type,
                    tamano=archivo.size,
                )
                for archivo in stored
            ]
            self.db.add(actividad)
            self.db.flush()
            actividad_id = actividad.id

        logger.info(f"Actividad {actividad_id} creada con {len(stored)} imágenes")
        return {"actividadId": actividad_id, "imagenesCount": len(stored)}

    def _serialize(self, actividades: Sequence[Actividad]) -> List[dict]:
        refs = []
        for actividad in actividades:
            try:
                refs.append(ActorRef.of(actividad.creado_por_id, actividad.creado_por_tipo))
            except ValueError:
                refs.append(None)
        actores = self.directory.resolve_many(ref for ref in refs if ref is not None)

        result = []
        for actividad, ref in zip(actividades, refs):
            creador = actores.get(ref) if ref else None
            result.append({
                "id": actividad.id,
                "titulo": actividad.titulo,
                "descripcion": actividad.descripcion,
                "tipo_actividad": actividad.tipo_actividad,
                "fecha_inicio": actividad.fecha_inicio.isoformat(),
                "fecha_fin": actividad.fecha_fin.isoformat() if actividad.fecha_fin else None,
                "direccion_id": actividad.direccion_id,
                "direccion_nombre": actividad.direccion.nombre if actividad.direccion else None,
                "creado_por_id": actividad.creado_por_id,
                "creado_por_tipo": actividad.creado_por_tipo,
                "creado_por_nombre": creador.nombre if creador else SIN_CREADOR,
                "estado": actividad.estado,
                "fecha_creacion": actividad.fecha_creacion.isoformat() if actividad.fecha_creacion else None,
                "imagenes": [serialize_imagen(imagen) for imagen in actividad.imagenes],
            })
        return result

    def _query(self):
        return (
            self.db.query(Actividad)
            .options(joinedload(Actividad.direccion), joinedload(Actividad.imagenes))
            .order_by(Actividad.fecha_creacion.desc(), Actividad.id.desc())
        )

    def list_by_direccion(self, direccion_id: int) -> List[dict]:
        return self._serialize(self._query().filter(Actividad.direccion_id == direccion_id).all())

    def list_all(self) -> List[dict]:
        return self._serialize(self._query().all())

    def update_state(self, actividad_id: int, estado: EstadoActividad) -> dict:
        actividad = self.db.query(Actividad).filter(Actividad.id == actividad_id).first()
        if not actividad:
            raise NotFoundError("Actividad no encontrada")

        with transaction(self.db):
            actividad.estado = estado.value

        logger.info(f"Actividad {actividad_id} actualizada a {estado.value}")
        return {"actividadId": actividad_id, "estado": estado.value}

    def delete_activity(self, actividad_id: int) -> dict:
        """Elimina primero los archivos de imagen y luego las filas (imágenes, actividad)"""
        actividad = self.db.query(Actividad).filter(Actividad.id == actividad_id).first()
        if not actividad:
            raise NotFoundError("Actividad no encontrada")

        titulo = actividad.titulo
        eliminadas = sum(
            1 for imagen in actividad.imagenes if self.store.delete(CATEGORY, imagen.ruta_archivo)
        )

        with transaction(self.db):
            # La relación con delete-orphan borra las imágenes antes que la actividad
            self.db.delete(actividad)

        logger.info(f"Actividad {actividad_id} eliminada ({eliminadas} imágenes)")
        return {"actividadId": actividad_id, "titulo": titulo, "imagenesEliminadas": eliminadas}
