from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from university_api.database import Base


class Direccion(Base):
    """Unidad organizacional a la que pertenecen directivos, personal y actividades"""
    __tablename__ = "direcciones"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(200), unique=True, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    directivos = relationship("Directivo", back_populates="direccion")
    personal = relationship("Personal", back_populates="direccion")
    actividades = relationship("Actividad", back_populates="direccion")

    def __repr__(self):
        return f"<Direccion(id={self.id}, nombre='{self.nombre}')>"
