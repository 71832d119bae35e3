from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from university_api.database import Base


class EstadoComunicado(str, Enum):
    BORRADOR = "borrador"
    PUBLICADO = "publicado"
    ARCHIVADO = "archivado"


class Comunicado(Base):
    __tablename__ = "comunicados"

    id = Column(Integer, primary_key=True, index=True)
    titulo = Column(String(255), nullable=False)
    contenido = Column(Text, nullable=False)
    link_externo = Column(String(500), nullable=True)
    publicado_por_id = Column(Integer, ForeignKey("super_users.id", ondelete="SET NULL"), nullable=True)
    estado = Column(String(20), nullable=False, default=EstadoComunicado.PUBLICADO.value)
    fecha_publicacion = Column(DateTime, default=func.now(), nullable=False, index=True)

    publicado_por = relationship("SuperUser", back_populates="comunicados")

    def __repr__(self):
        return f"<Comunicado(id={self.id}, titulo='{self.titulo}', estado='{self.estado}')>"

    @property
    def publicado_por_nombre(self):
        return self.publicado_por.username if self.publicado_por else None
