import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from university_api.database import get_db
from university_api.dependencies import get_current_actor
from university_api.exceptions import ConflictError, ValidationError
from university_api.models.actor import ActorRole, SuperUser
from university_api.schemas.actor import LoginRequest, RefreshTokenRequest, SuperUserCreate
from university_api.services.auth import actor_profile, auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_credentials(credentials: LoginRequest) -> None:
    if not credentials.email or not credentials.password:
        raise ValidationError("Email y contraseña son requeridos")


@router.post("/create-superuser", status_code=status.HTTP_201_CREATED)
def create_superuser(
    user_data: SuperUserCreate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Crear un super usuario (administrador del sistema)
    """
    existing = db.query(SuperUser).filter(
        or_(SuperUser.username == user_data.username, SuperUser.email == user_data.email)
    ).first()
    if existing:
        raise ConflictError("El usuario o email ya existe")

    super_user = SuperUser(
        username=user_data.username,
        email=user_data.email,
        hashed_password=auth_service.get_password_hash(user_data.password),
    )
    db.add(super_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("El usuario o email ya existe")
    db.refresh(super_user)

    logger.info(f"Super usuario creado: {super_user.email}")
    return {
        "success": True,
        "message": "Super usuario creado exitosamente",
        "userId": super_user.id,
    }


@router.post("/login")
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
) -> Any:
    """
    Login exclusivo para super usuarios
    """
    _require_credentials(credentials)
    user, role = auth_service.resolve(
        db, credentials.email, credentials.password, roles=(ActorRole.SUPERADMIN,)
    )

    logger.info(f"Login exitoso para: {user.email}")
    return {
        "success": True,
        "message": "Login exitoso",
        "user": {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "created_at": user.created_at.isoformat() if user.created_at else None,
        },
        **auth_service.create_actor_tokens(user, role),
    }


@router.post("/login-general")
def login_general(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
) -> Any:
    """
    Login para cualquier tipo de usuario: super usuario, directivo o personal
    """
    _require_credentials(credentials)
    actor, role = auth_service.resolve(db, credentials.email, credentials.password)

    logger.info(f"Login exitoso para: {actor.email} Tipo: {role.value}")
    return {
        "success": True,
        "message": "Login exitoso",
        "user": actor_profile(actor, role),
        "userType": role.value,
        **auth_service.create_actor_tokens(actor, role),
    }


@router.get("/superusers")
def list_superusers(db: Session = Depends(get_db)) -> Any:
    users = db.query(SuperUser).order_by(SuperUser.created_at.desc(), SuperUser.id.desc()).all()
    return {
        "success": True,
        "data": [
            {
                "id": u.id,
                "username": u.username,
                "email": u.email,
                "created_at": u.created_at.isoformat() if u.created_at else None,
            }
            for u in users
        ],
    }


@router.post("/auth/refresh")
def refresh_token(token_data: RefreshTokenRequest) -> Any:
    """
    Refresh access token
    """
    access_token = auth_service.refresh_access_token(token_data.refresh_token)
    return {
        "success": True,
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": auth_service.access_token_expire_minutes * 60,
    }


@router.get("/auth/me")
def get_current_actor_info(current=Depends(get_current_actor)) -> Any:
    """
    Get current actor information
    """
    ref, actor = current
    return {"success": True, "user": actor_profile(actor, ref.role), "userType": ref.role.value}
