from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from university_api.database import get_db
from university_api.exceptions import UnauthorizedError
from university_api.services.actors import Actor, ActorRef
from university_api.services.auth import auth_service


security = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Tuple[ActorRef, Actor]:
    """Get current authenticated actor and its tagged reference"""
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    return auth_service.get_current_actor(db, credentials.credentials)


def get_optional_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[ActorRef]:
    """Tagged reference from the bearer token, if one was sent"""
    if credentials is None:
        return None
    return auth_service.verify_token(credentials.credentials)
