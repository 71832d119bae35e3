from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from university_api.config import settings
from university_api.database import Base


class ActorRole(str, Enum):
    SUPERADMIN = "superadmin"
    DIRECTIVO = "directivo"
    PERSONAL = "personal"


# Roles que pueden recibir asignaciones de tareas
ASSIGNABLE_ROLES = (ActorRole.PERSONAL, ActorRole.DIRECTIVO)


class SuperUser(Base):
    __tablename__ = "super_users"

    role = ActorRole.SUPERADMIN

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    comunicados = relationship("Comunicado", back_populates="publicado_por")

    def __repr__(self):
        return f"<SuperUser(id={self.id}, email='{self.email}')>"

    @property
    def nombre(self) -> str:
        return self.username

    @property
    def cargo_actor(self) -> Optional[str]:
        return None

    @property
    def direccion_nombre(self) -> Optional[str]:
        return None


class Directivo(Base):
    __tablename__ = "directivos"

    role = ActorRole.DIRECTIVO

    id = Column(Integer, primary_key=True, index=True)
    nombre_completo = Column(String(200), nullable=False)
    cargo = Column(String(150), nullable=False)
    direccion_id = Column(Integer, ForeignKey("direcciones.id"), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    direccion = relationship("Direccion", back_populates="directivos")

    def __repr__(self):
        return f"<Directivo(id={self.id}, email='{self.email}')>"

    @property
    def nombre(self) -> str:
        return self.nombre_completo

    @property
    def cargo_actor(self) -> Optional[str]:
        return self.cargo

    @property
    def direccion_nombre(self) -> Optional[str]:
        return self.direccion.nombre if self.direccion else None


class Personal(Base):
    __tablename__ = "personal"

    role = ActorRole.PERSONAL

    id = Column(Integer, primary_key=True, index=True)
    nombre_completo = Column(String(200), nullable=False)
    puesto = Column(String(150), nullable=False)
    direccion_id = Column(Integer, ForeignKey("direcciones.id"), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    foto_perfil = Column(String(255))  # Nombre del archivo en uploads/personal
    created_at = Column(DateTime, default=func.now(), nullable=False)

    direccion = relationship("Direccion", back_populates="personal")

    def __repr__(self):
        return f"<Personal(id={self.id}, email='{self.email}')>"

    @property
    def nombre(self) -> str:
        return self.nombre_completo

    @property
    def cargo_actor(self) -> Optional[str]:
        return self.puesto

    @property
    def direccion_nombre(self) -> Optional[str]:
        return self.direccion.nombre if self.direccion else None

    @property
    def foto_url(self) -> Optional[str]:
        if not self.foto_perfil:
            return None
        return photo_url(self.foto_perfil)


DEFAULT_AVATAR = "default-avatar.png"


def photo_url(filename: str) -> str:
    return settings.public_url(f"{settings.api_prefix}/personal/foto/{filename}")
