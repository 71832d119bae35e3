import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from university_api.config import settings
from university_api.exceptions import UnauthorizedError, UnavailableError
from university_api.models.actor import ActorRole
from university_api.services.actors import Actor, ActorDirectory, ActorRef

logger = logging.getLogger(__name__)

# Orden en que se consultan las tablas de actores al iniciar sesión
LOGIN_ORDER = (ActorRole.SUPERADMIN, ActorRole.DIRECTIVO, ActorRole.PERSONAL)


class AuthService:
    def __init__(self):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.bcrypt_rounds,
        )
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.access_token_expire_minutes = settings.access_token_expire_minutes
        self.refresh_token_expire_days = settings.refresh_token_expire_days

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            # Hash malformado en la base de datos
            return False

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    def resolve(self, db: Session, email: str, password: str, roles=LOGIN_ORDER) -> Tuple[Actor, ActorRole]:
        """
        Determine which actor table holds a verified account for the credentials.

        Tables are probed in ``roles`` order. The search moves on to the next
        table only when the current one has no row for the email; a matching
        row with a wrong password ends the search. Both failure cases raise
        the same UnauthorizedError.
        """
        directory = ActorDirectory(db)
        try:
            for role in roles:
                actor = directory.find_by_email(role, email)
                if actor is None:
                    continue
                if not self.verify_password(password, actor.hashed_password):
                    logger.info(f"Contraseña incorrecta para {email} ({role.value})")
                    raise UnauthorizedError()
                return actor, role
        except OperationalError as e:
            logger.error(f"Base de datos no disponible durante el login: {str(e)}")
            raise UnavailableError("Error en el servidor")

        raise UnauthorizedError()

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=self.access_token_expire_minutes)

        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def create_refresh_token(self, data: dict) -> str:
        """Create a JWT refresh token"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + timedelta(days=self.refresh_token_expire_days)
        to_encode.update({"exp": expire, "type": "refresh"})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str, token_type: str = "access") -> ActorRef:
        """Verify and decode a JWT token into the actor reference it carries"""
        credentials_exception = UnauthorizedError("Could not validate credentials")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise credentials_exception

        actor_id = payload.get("sub")
        role = payload.get("role")
        if actor_id is None or role is None or payload.get("type") != token_type:
            raise credentials_exception

        try:
            return ActorRef.of(actor_id, role)
        except (ValueError, TypeError):
            raise credentials_exception

    def get_current_actor(self, db: Session, token: str) -> Tuple[ActorRef, Actor]:
        """Get current actor from JWT token"""
        ref = self.verify_token(token)
        actor = ActorDirectory(db).get(ref)
        if actor is None:
            raise UnauthorizedError("User not found")
        return ref, actor

    def refresh_access_token(self, refresh_token: str) -> str:
        """Create new access token from refresh token"""
        ref = self.verify_token(refresh_token, "refresh")
        return self.create_access_token({"sub": str(ref.id), "role": ref.role.value})

    def create_actor_tokens(self, actor: Actor, role: ActorRole) -> dict:
        """Create both access and refresh tokens for an actor"""
        token_data = {
            "sub": str(actor.id),  # JWT standard requires sub to be a string
            "email": actor.email,
            "role": role.value,
        }

        return {
            "access_token": self.create_access_token(token_data),
            "refresh_token": self.create_refresh_token(token_data),
            "token_type": "bearer",
            "expires_in": self.access_token_expire_minutes * 60,
        }


def actor_profile(actor: Actor, role: ActorRole) -> dict:
    """Datos públicos de un actor autenticado"""
    profile = {
        "id": actor.id,
        "nombre": actor.nombre,
        "username": actor.nombre,
        "email": actor.email,
        "tipo": role.value,
        "userType": role.value,
    }
    if role == ActorRole.SUPERADMIN:
        profile["created_at"] = actor.created_at.isoformat() if actor.created_at else None
    else:
        profile["direccion_id"] = actor.direccion_id
        profile["direccion_nombre"] = actor.direccion_nombre
        if role == ActorRole.DIRECTIVO:
            profile["cargo"] = actor.cargo
        else:
            profile["puesto"] = actor.puesto
            profile["foto_url"] = actor.foto_url
    return profile


# Global instance
auth_service = AuthService()
