from enum import Enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from university_api.config import settings
from university_api.database import Base


class EstadoActividad(str, Enum):
    PENDIENTE = "pendiente"
    EN_PROGRESO = "en_progreso"
    COMPLETADA = "completada"
    CANCELADA = "cancelada"


class Actividad(Base):
    __tablename__ = "actividades"

    id = Column(Integer, primary_key=True, index=True)
    titulo = Column(String(255), nullable=False)
    descripcion = Column(Text, nullable=True)
    tipo_actividad = Column(String(100), nullable=False)  # Texto libre: 'taller', 'conferencia', ...
    fecha_inicio = Column(Date, nullable=False)
    fecha_fin = Column(Date, nullable=True)
    direccion_id = Column(Integer, ForeignKey("direcciones.id"), nullable=False)
    creado_por_id = Column(Integer, nullable=False)
    creado_por_tipo = Column(String(20), nullable=False)  # superadmin, directivo, personal
    estado = Column(String(20), nullable=False, default=EstadoActividad.PENDIENTE.value)
    fecha_creacion = Column(DateTime, default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint('fecha_fin IS NULL OR fecha_fin >= fecha_inicio',
                        name='check_actividad_fecha_fin'),
    )

    direccion = relationship("Direccion", back_populates="actividades")
    imagenes = relationship(
        "ActividadImagen",
        back_populates="actividad",
        cascade="all, delete-orphan",
        order_by="ActividadImagen.id",
    )

    def __repr__(self):
        return f"<Actividad(id={self.id}, titulo='{self.titulo}')>"


class ActividadImagen(Base):
    __tablename__ = "actividad_imagenes"

    id = Column(Integer, primary_key=True, index=True)
    actividad_id = Column(Integer, ForeignKey("actividades.id", ondelete="CASCADE"), nullable=False)
    nombre_archivo = Column(String(255), nullable=False)  # Nombre original
    ruta_archivo = Column(String(255), nullable=False)  # Nombre generado en uploads/actividades
    tipo_mime = Column(String(100))
    tamano = Column(Integer)
    fecha_subida = Column(DateTime, default=func.now(), nullable=False)

    actividad = relationship("Actividad", back_populates="imagenes")

    @property
    def url(self) -> str:
        return settings.public_url(f"/uploads/actividades/{self.ruta_archivo}")
