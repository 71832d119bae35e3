"""
Flujo de trabajo de tareas: creación, asignación, avance y cierre.

Las operaciones que escriben varias filas usan ``transaction(db)``; los
archivos ya guardados se registran como acción compensatoria y se eliminan
si la transacción no llega a confirmarse.
"""
import logging
import math
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from university_api.config import settings
from university_api.database import transaction
from university_api.exceptions import NotFoundError, ValidationError
from university_api.models.actor import ActorRole, ASSIGNABLE_ROLES, Personal
from university_api.models.tarea import (
    AccionHistorial,
    ESTADOS_ABIERTOS,
    EstadoAsignacion,
    Tarea,
    TareaArchivo,
    TareaAsignacion,
    TareaHistorial,
)
from university_api.schemas.tarea import AsignacionEstadoUpdate, AsignacionRef, parse_asignaciones
from university_api.services.actors import ActorDirectory, ActorRef
from university_api.utils.storage import BlobStore, StoredFile, blob_store
from university_api.utils.validation_utils import clean_text, is_blank, parse_fecha, safe_int_conversion

logger = logging.getLogger(__name__)

CATEGORY = "tareas"
FILE_PREFIX = "tarea"


def calcular_progreso(completadas: int, total: int) -> int:
    """Porcentaje de asignaciones completadas, redondeando .5 hacia arriba"""
    if not total:
        return 0
    return int(math.floor(100 * completadas / total + 0.5))


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_archivo(archivo: TareaArchivo) -> dict:
    return {
        "id": archivo.id,
        "tarea_id": archivo.tarea_id,
        "nombre_original": archivo.nombre_original,
        "nombre_archivo": archivo.nombre_archivo,
        "ruta_archivo": archivo.ruta_archivo,
        "tipo_mime": archivo.tipo_mime,
        "tamano": archivo.tamano,
        "fecha_subida": _iso(archivo.fecha_subida),
        "url": archivo.url,
    }


def _serialize_tarea_base(tarea: Tarea, creado_por_nombre: Optional[str]) -> dict:
    return {
        "id": tarea.id,
        "titulo": tarea.titulo,
        "descripcion": tarea.descripcion,
        "fecha_entrega": _iso(tarea.fecha_entrega),
        "creado_por_id": tarea.creado_por_id,
        "creado_por_tipo": tarea.creado_por_tipo,
        "creado_por_nombre": creado_por_nombre,
        "fecha_creacion": _iso(tarea.fecha_creacion),
    }


class TareaService:
    def __init__(self, db: Session, store: BlobStore = blob_store):
        self.db = db
        self.store = store
        self.directory = ActorDirectory(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _actor_ref(self, actor_id, role, allowed: Iterable[ActorRole] = tuple(ActorRole)) -> ActorRef:
        try:
            ref = ActorRef.of(actor_id, role)
        except (TypeError, ValueError):
            raise ValidationError(f"Tipo de usuario inválido: {role}")
        if ref.role not in allowed:
            raise ValidationError(f"Tipo de usuario inválido: {role}")
        return ref

    def _require_actors(self, refs: Sequence[ActorRef]) -> None:
        resolved = self.directory.resolve_many(refs)
        for ref in refs:
            if ref not in resolved:
                raise ValidationError(f"Usuario {ref.role.value} con ID {ref.id} no encontrado")

    def _assignee_refs(self, asignaciones: List[AsignacionRef]) -> List[ActorRef]:
        return [self._actor_ref(a.usuario_id, a.usuario_tipo, ASSIGNABLE_ROLES) for a in asignaciones]

    def _get_tarea(self, tarea_id: int) -> Tarea:
        tarea = self.db.query(Tarea).filter(Tarea.id == tarea_id).first()
        if not tarea:
            raise NotFoundError("Tarea no encontrada")
        return tarea

    def _get_asignacion(self, asignacion_id: int) -> TareaAsignacion:
        asignacion = (
            self.db.query(TareaAsignacion)
            .options(joinedload(TareaAsignacion.tarea))
            .filter(TareaAsignacion.id == asignacion_id)
            .first()
        )
        if not asignacion:
            raise NotFoundError("Asignación no encontrada")
        return asignacion

    async def _save_files(self, archivos: Optional[Sequence[UploadFile]]) -> List[StoredFile]:
        return await self.store.save_uploads(
            archivos,
            CATEGORY,
            FILE_PREFIX,
            max_size=settings.max_task_file_size,
            max_files=settings.max_task_files,
        )

    def _add_archivos(self, tarea_id: int, stored: Sequence[StoredFile]) -> None:
        for archivo in stored:
            self.db.add(TareaArchivo(
                tarea_id=tarea_id,
                nombre_original=archivo.original_name,
                nombre_archivo=archivo.filename,
                ruta_archivo=archivo.filename,
                tipo_mime=archivo.content_type,
                tamano=archivo.size,
            ))

    def _log(self, tarea_id: int, actor: ActorRef, accion: AccionHistorial, descripcion: str) -> None:
        self.db.add(TareaHistorial(
            tarea_id=tarea_id,
            usuario_id=actor.id,
            usuario_tipo=actor.role.value,
            accion=accion.value,
            descripcion=descripcion,
        ))

    def _serialize_asignaciones(self, asignaciones: Sequence[TareaAsignacion]) -> List[dict]:
        refs = [ActorRef.of(a.usuario_id, a.usuario_tipo) for a in asignaciones]
        actores = self.directory.resolve_many(refs)

        result = []
        for asignacion, ref in zip(asignaciones, refs):
            actor = actores.get(ref)
            result.append({
                "id": asignacion.id,
                "tarea_id": asignacion.tarea_id,
                "usuario_id": asignacion.usuario_id,
                "usuario_tipo": asignacion.usuario_tipo,
                "estado": asignacion.estado,
                "comentarios": asignacion.comentarios,
                "fecha_completado": _iso(asignacion.fecha_completado),
                "fecha_asignacion": _iso(asignacion.fecha_asignacion),
                "usuario_nombre": actor.nombre if actor else None,
                "usuario_cargo": actor.cargo_actor if actor else None,
                "direccion_nombre": actor.direccion_nombre if actor else None,
            })
        # Mismo orden que la vista de administración: estado y luego nombre
        result.sort(key=lambda a: (a["estado"], a["usuario_nombre"] or ""))
        return result

    def _creator_names(self, tareas: Sequence[Tarea]) -> Dict[ActorRef, str]:
        refs = [ActorRef.of(t.creado_por_id, t.creado_por_tipo) for t in tareas]
        return {ref: actor.nombre for ref, actor in self.directory.resolve_many(refs).items()}

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    async def create_task(
        self,
        titulo: Optional[str],
        descripcion: Optional[str],
        fecha_entrega: Optional[str],
        creado_por_id,
        creado_por_tipo: Optional[str],
        asignaciones: Optional[str],
        archivos: Optional[Sequence[UploadFile]] = None,
    ) -> dict:
        """
        Crea una tarea con sus asignaciones y archivos en una sola transacción.

        Todas las validaciones ocurren antes de guardar archivos o tocar la
        base de datos. Si la transacción falla, los archivos guardados se
        eliminan.
        """
        if any(is_blank(v) for v in (titulo, fecha_entrega, creado_por_id, asignaciones)):
            raise ValidationError("Todos los campos son requeridos")

        fecha = parse_fecha(fecha_entrega, "fecha_entrega")
        creador = self._actor_ref(
            safe_int_conversion(creado_por_id, "creado_por_id", allow_none=False),
            creado_por_tipo or ActorRole.SUPERADMIN.value,
        )
        destinatarios = self._assignee_refs(parse_asignaciones(asignaciones))
        self._require_actors([creador] + destinatarios)

        stored = await self._save_files(archivos)

        with transaction(self.db) as tx:
            tx.on_failure(self.store.discard, stored)

            tarea = Tarea(
                titulo=titulo.strip(),
                descripcion=clean_text(descripcion),
                fecha_entrega=fecha,
                creado_por_id=creador.id,
                creado_por_tipo=creador.role.value,
            )
            self.db.add(tarea)
            self.db.flush()
            tarea_id = tarea.id

            for ref in destinatarios:
                self.db.add(TareaAsignacion(
                    tarea_id=tarea_id,
                    usuario_id=ref.id,
                    usuario_tipo=ref.role.value,
                    estado=EstadoAsignacion.PENDIENTE.value,
                ))
            self._add_archivos(tarea_id, stored)
            self._log(
                tarea_id, creador, AccionHistorial.CREADA,
                f"Tarea creada y asignada a {len(destinatarios)} usuario(s)",
            )

        logger.info(f"Tarea {tarea_id} creada con {len(destinatarios)} asignaciones y {len(stored)} archivos")
        return {
            "tareaId": tarea_id,
            "asignaciones": len(destinatarios),
            "archivos": len(stored),
        }

    async def complete_assignment(
        self,
        asignacion_id: int,
        comentarios: Optional[str],
        archivos: Optional[Sequence[UploadFile]] = None,
    ) -> dict:
        """
        Marca una asignación como completada.

        Requiere un comentario o al menos un archivo. Los archivos quedan
        asociados a la tarea, no a la asignación. Completar de nuevo una
        asignación ya completada sobrescribe comentario y fecha.
        """
        comentarios = clean_text(comentarios)
        pending_uploads = [f for f in archivos or [] if f is not None and f.filename]
        if not comentarios and not pending_uploads:
            raise ValidationError("Debes agregar una descripción o un archivo para completar la tarea")

        asignacion = self._get_asignacion(asignacion_id)
        titulo = asignacion.tarea.titulo
        stored = await self._save_files(pending_uploads)

        descripcion = "Tarea completada"
        if comentarios:
            descripcion += " con comentarios"
        if stored:
            descripcion += f" y {len(stored)} archivo(s)"

        with transaction(self.db) as tx:
            tx.on_failure(self.store.discard, stored)

            asignacion.estado = EstadoAsignacion.COMPLETADA.value
            asignacion.comentarios = comentarios
            asignacion.fecha_completado = datetime.now()
            self._add_archivos(asignacion.tarea_id, stored)
            self._log(
                asignacion.tarea_id,
                ActorRef.of(asignacion.usuario_id, asignacion.usuario_tipo),
                AccionHistorial.COMPLETADA,
                descripcion,
            )

        logger.info(f"Asignación {asignacion_id} completada ({len(stored)} archivos)")
        return {"tarea": titulo, "comentarios": comentarios, "archivos": len(stored)}

    def start_assignment(self, asignacion_id: int) -> dict:
        """pendiente -> en_progreso; sin efecto si ya está en progreso"""
        asignacion = self._get_asignacion(asignacion_id)

        if asignacion.estado == EstadoAsignacion.COMPLETADA.value:
            raise ValidationError("La tarea ya fue completada")

        if asignacion.estado != EstadoAsignacion.EN_PROGRESO.value:
            with transaction(self.db):
                asignacion.estado = EstadoAsignacion.EN_PROGRESO.value
                self._log(
                    asignacion.tarea_id,
                    ActorRef.of(asignacion.usuario_id, asignacion.usuario_tipo),
                    AccionHistorial.EN_PROGRESO,
                    "Tarea iniciada",
                )
            logger.info(f"Asignación {asignacion_id} en progreso")

        return {"asignacionId": asignacion.id, "estado": asignacion.estado}

    def update_assignment_state(
        self,
        asignacion_id: int,
        data: AsignacionEstadoUpdate,
        actor: Optional[ActorRef] = None,
    ) -> dict:
        """
        Actualización administrativa del estado de una asignación.

        Se permite desde cualquier estado. El actor se toma del cuerpo de la
        petición o, en su defecto, del token de sesión.
        """
        asignacion = self._get_asignacion(asignacion_id)

        if data.usuario_id is not None and not data.usuario_tipo:
            raise ValidationError("El campo 'usuario_tipo' es requerido cuando se envía 'usuario_id'")
        if data.usuario_tipo and data.usuario_id is None:
            raise ValidationError("El campo 'usuario_id' es requerido cuando se envía 'usuario_tipo'")
        if data.usuario_id is not None:
            actor = self._actor_ref(data.usuario_id, data.usuario_tipo)
        if actor is None:
            raise ValidationError("Se requiere el usuario que realiza la actualización")
        self._require_actors([actor])

        estado = data.estado.value
        with transaction(self.db):
            asignacion.estado = estado
            asignacion.comentarios = clean_text(data.comentarios)
            asignacion.fecha_completado = (
                datetime.now() if data.estado == EstadoAsignacion.COMPLETADA else None
            )
            self._log(
                asignacion.tarea_id, actor, AccionHistorial.ACTUALIZACION,
                f"Estado de asignación actualizado a: {estado}",
            )

        logger.info(f"Asignación {asignacion_id} actualizada a {estado} por {actor.role.value} {actor.id}")
        return {"asignacionId": asignacion_id, "estado": estado}

    async def edit_task(
        self,
        tarea_id: int,
        titulo: Optional[str],
        descripcion: Optional[str],
        fecha_entrega: Optional[str],
        asignaciones: Optional[str] = None,
        archivos: Optional[Sequence[UploadFile]] = None,
    ) -> dict:
        """
        Edita los datos de una tarea.

        Si se envían ``asignaciones`` reemplazan por completo a las actuales,
        que vuelven a ``pendiente``; el historial no se modifica. Los archivos
        nuevos se agregan a los existentes.
        """
        tarea = self._get_tarea(tarea_id)

        if is_blank(titulo) or is_blank(fecha_entrega):
            raise ValidationError("Título y fecha de entrega son requeridos")
        fecha = parse_fecha(fecha_entrega, "fecha_entrega")

        destinatarios = None
        if not is_blank(asignaciones):
            destinatarios = self._assignee_refs(parse_asignaciones(asignaciones))
            self._require_actors(destinatarios)

        stored = await self._save_files(archivos)

        with transaction(self.db) as tx:
            tx.on_failure(self.store.discard, stored)

            tarea.titulo = titulo.strip()
            tarea.descripcion = clean_text(descripcion)
            tarea.fecha_entrega = fecha

            if destinatarios is not None:
                tarea.asignaciones = [
                    TareaAsignacion(
                        usuario_id=ref.id,
                        usuario_tipo=ref.role.value,
                        estado=EstadoAsignacion.PENDIENTE.value,
                    )
                    for ref in destinatarios
                ]
            self._add_archivos(tarea.id, stored)

        logger.info(f"Tarea {tarea_id} actualizada")
        return {
            "tareaId": tarea_id,
            "asignaciones": len(tarea.asignaciones),
            "archivosNuevos": len(stored),
        }

    def delete_task(self, tarea_id: int) -> dict:
        """
        Elimina una tarea con sus asignaciones, archivos e historial.

        Los archivos físicos se eliminan después de confirmar la transacción;
        un fallo al borrarlos se registra pero no revierte la eliminación.
        """
        tarea = self._get_tarea(tarea_id)
        titulo = tarea.titulo
        nombres = [archivo.ruta_archivo for archivo in tarea.archivos]

        with transaction(self.db):
            self.db.delete(tarea)

        eliminados = sum(1 for nombre in nombres if self.store.delete(CATEGORY, nombre))
        if eliminados < len(nombres):
            logger.warning(f"Tarea {tarea_id}: {len(nombres) - eliminados} archivo(s) no pudieron eliminarse")

        logger.info(f"Tarea {tarea_id} eliminada")
        return {"tareaId": tarea_id, "titulo": titulo, "archivosEliminados": eliminados}

    def delete_attachment(self, archivo_id: int) -> dict:
        archivo = self.db.query(TareaArchivo).filter(TareaArchivo.id == archivo_id).first()
        if not archivo:
            raise NotFoundError("Archivo no encontrado")
        nombre, ruta = archivo.nombre_original, archivo.ruta_archivo

        with transaction(self.db):
            self.db.delete(archivo)
        self.store.delete(CATEGORY, ruta)

        return {"archivoId": archivo_id, "nombre_original": nombre}

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def get_task(self, tarea_id: int) -> dict:
        tarea = self._get_tarea(tarea_id)
        creador = self.directory.display_name(ActorRef.of(tarea.creado_por_id, tarea.creado_por_tipo))

        historial = (
            self.db.query(TareaHistorial)
            .filter(TareaHistorial.tarea_id == tarea_id)
            .order_by(TareaHistorial.fecha.desc(), TareaHistorial.id.desc())
            .all()
        )
        refs = [ActorRef.of(h.usuario_id, h.usuario_tipo) for h in historial]
        actores = self.directory.resolve_many(refs)

        data = _serialize_tarea_base(tarea, creador)
        data["asignaciones"] = self._serialize_asignaciones(tarea.asignaciones)
        data["archivos"] = [serialize_archivo(a) for a in tarea.archivos]
        data["historial"] = [
            {
                "id": h.id,
                "usuario_id": h.usuario_id,
                "usuario_tipo": h.usuario_tipo,
                "usuario_nombre": actores[ref].nombre if ref in actores else None,
                "accion": h.accion,
                "descripcion": h.descripcion,
                "fecha": _iso(h.fecha),
            }
            for h, ref in zip(historial, refs)
        ]
        return data

    def list_all_tasks(self) -> List[dict]:
        """Todas las tareas con conteos por estado y progreso"""
        tareas = (
            self.db.query(Tarea)
            .options(joinedload(Tarea.asignaciones), joinedload(Tarea.archivos))
            .order_by(Tarea.fecha_entrega.asc(), Tarea.fecha_creacion.desc(), Tarea.id.desc())
            .all()
        )
        creadores = self._creator_names(tareas)

        result = []
        for tarea in tareas:
            estados = [a.estado for a in tarea.asignaciones]
            total = len(estados)
            completadas = estados.count(EstadoAsignacion.COMPLETADA.value)

            data = _serialize_tarea_base(
                tarea, creadores.get(ActorRef.of(tarea.creado_por_id, tarea.creado_por_tipo))
            )
            data.update({
                "total_asignaciones": total,
                "completadas": completadas,
                "pendientes": estados.count(EstadoAsignacion.PENDIENTE.value),
                "en_progreso": estados.count(EstadoAsignacion.EN_PROGRESO.value),
                "progreso": calcular_progreso(completadas, total),
                "asignaciones": self._serialize_asignaciones(tarea.asignaciones),
                "archivos": [serialize_archivo(a) for a in tarea.archivos],
            })
            result.append(data)
        return result

    def list_tasks_for_assignee(
        self,
        usuario_id: int,
        usuario_tipo: str = ActorRole.PERSONAL.value,
        hoy: Optional[date] = None,
    ) -> List[dict]:
        """
        Tareas de un usuario: primero las abiertas (pendiente, en progreso),
        luego el resto; dentro de cada grupo por fecha de entrega ascendente.
        """
        ref = self._actor_ref(usuario_id, usuario_tipo, ASSIGNABLE_ROLES)
        abierta_primero = case((TareaAsignacion.estado.in_(ESTADOS_ABIERTOS), 0), else_=1)

        filas = (
            self.db.query(Tarea, TareaAsignacion)
            .join(TareaAsignacion, TareaAsignacion.tarea_id == Tarea.id)
            .filter(
                TareaAsignacion.usuario_id == ref.id,
                TareaAsignacion.usuario_tipo == ref.role.value,
            )
            .order_by(abierta_primero, Tarea.fecha_entrega.asc(), Tarea.id.asc())
            .all()
        )
        creadores = self._creator_names([tarea for tarea, _ in filas])

        result = []
        for tarea, asignacion in filas:
            data = _serialize_tarea_base(
                tarea, creadores.get(ActorRef.of(tarea.creado_por_id, tarea.creado_por_tipo))
            )
            data.update({
                "asignacion_id": asignacion.id,
                "asignacion_estado": asignacion.estado,
                "asignacion_comentarios": asignacion.comentarios,
                "fecha_completado": _iso(asignacion.fecha_completado),
                "archivos": [serialize_archivo(a) for a in tarea.archivos],
                "dias_restantes": tarea.dias_restantes(hoy),
            })
            result.append(data)
        return result

    def count_pending(self, usuario_id: int, usuario_tipo: str = ActorRole.PERSONAL.value) -> int:
        ref = self._actor_ref(usuario_id, usuario_tipo, ASSIGNABLE_ROLES)
        return (
            self.db.query(func.count(TareaAsignacion.id))
            .filter(
                TareaAsignacion.usuario_id == ref.id,
                TareaAsignacion.usuario_tipo == ref.role.value,
                TareaAsignacion.estado.in_(ESTADOS_ABIERTOS),
            )
            .scalar()
        )

    def available_assignees(self) -> List[dict]:
        """Personal al que se le pueden asignar tareas"""
        personal = (
            self.db.query(Personal)
            .options(joinedload(Personal.direccion))
            .order_by(Personal.nombre_completo)
            .all()
        )
        return [
            {
                "id": p.id,
                "nombre": p.nombre,
                "tipo": ActorRole.PERSONAL.value,
                "cargo": p.puesto,
                "direccion_nombre": p.direccion_nombre,
            }
            for p in personal
        ]
