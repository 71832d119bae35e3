"""
SQLAlchemy models for the task assignment workflow
"""
from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from university_api.config import settings
from university_api.database import Base


class EstadoAsignacion(str, Enum):
    PENDIENTE = "pendiente"
    EN_PROGRESO = "en_progreso"
    COMPLETADA = "completada"


ESTADOS_ABIERTOS = (EstadoAsignacion.PENDIENTE.value, EstadoAsignacion.EN_PROGRESO.value)


class AccionHistorial(str, Enum):
    CREADA = "creada"
    ACTUALIZACION = "actualizacion"
    EN_PROGRESO = "en_progreso"
    COMPLETADA = "completada"


class Tarea(Base):
    __tablename__ = "tareas"

    id = Column(Integer, primary_key=True, index=True)
    titulo = Column(String(255), nullable=False)
    descripcion = Column(Text, nullable=True)
    fecha_entrega = Column(Date, nullable=False, index=True)
    creado_por_id = Column(Integer, nullable=False)
    creado_por_tipo = Column(String(20), nullable=False)
    fecha_creacion = Column(DateTime, default=func.now(), nullable=False)

    asignaciones = relationship(
        "TareaAsignacion", back_populates="tarea",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="TareaAsignacion.id",
    )
    archivos = relationship(
        "TareaArchivo", back_populates="tarea",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="TareaArchivo.id",
    )
    historial = relationship(
        "TareaHistorial", back_populates="tarea",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self):
        return f"<Tarea(id={self.id}, titulo='{self.titulo}')>"

    def dias_restantes(self, hoy: Optional[date] = None) -> int:
        """Días completos entre hoy y la fecha de entrega (negativo si venció)"""
        hoy = hoy or date.today()
        return (self.fecha_entrega - hoy).days


class TareaAsignacion(Base):
    __tablename__ = "tareas_asignaciones"

    id = Column(Integer, primary_key=True, index=True)
    tarea_id = Column(Integer, ForeignKey("tareas.id", ondelete="CASCADE"), nullable=False)
    usuario_id = Column(Integer, nullable=False)
    usuario_tipo = Column(String(20), nullable=False)  # personal, directivo
    estado = Column(String(20), nullable=False, default=EstadoAsignacion.PENDIENTE.value)
    comentarios = Column(Text, nullable=True)
    fecha_completado = Column(DateTime, nullable=True)
    fecha_asignacion = Column(DateTime, default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_asignacion_usuario', 'usuario_id', 'usuario_tipo', 'estado'),
    )

    tarea = relationship("Tarea", back_populates="asignaciones")


class TareaArchivo(Base):
    __tablename__ = "tareas_archivos"

    id = Column(Integer, primary_key=True, index=True)
    tarea_id = Column(Integer, ForeignKey("tareas.id", ondelete="CASCADE"), nullable=False)
    nombre_original = Column(String(255), nullable=False)
    nombre_archivo = Column(String(255), nullable=False)
    ruta_archivo = Column(String(255), nullable=False)
    tipo_mime = Column(String(100))
    tamano = Column(Integer)
    fecha_subida = Column(DateTime, default=func.now(), nullable=False)

    tarea = relationship("Tarea", back_populates="archivos")

    @property
    def url(self) -> str:
        return settings.public_url(f"/uploads/tareas/{self.ruta_archivo}")


class TareaHistorial(Base):
    """Registro inmutable de acciones sobre una tarea"""
    __tablename__ = "tareas_historial"

    id = Column(Integer, primary_key=True, index=True)
    tarea_id = Column(Integer, ForeignKey("tareas.id", ondelete="CASCADE"), nullable=False)
    usuario_id = Column(Integer, nullable=False)
    usuario_tipo = Column(String(20), nullable=False)
    accion = Column(String(30), nullable=False)
    descripcion = Column(Text)
    fecha = Column(DateTime, default=func.now(), nullable=False, index=True)

    tarea = relationship("Tarea", back_populates="historial")
